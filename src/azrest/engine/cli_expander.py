"""Render the command line equivalent to a request body (``--print-cli``).

A body authored in a file or an editor, or read from a bulk input record,
is mapped back onto the command's options so the user gets a plain
command line that reproduces the request::

    azrest api resources group create --id /subscriptions/.../resourcegroups/rg \\
        --location "westus" --tags "{\\"env\\":\\"dev\\"}"

Only arguments of named (non-identity) groups whose ``var`` root is a
``$...parameters`` variable are looked up in the body; the rest of the
``var`` is the member path inside the body.
"""

from __future__ import annotations

import enum
import json
from typing import Any, Optional, Sequence

from azrest.exceptions import InvalidUsageError
from azrest.metadata.command import ArgGroup

ID_OPTION = "id"

# Options that control how the body is obtained; they have no meaning in
# the expanded command line.
_SKIPPED_OPTIONS = frozenset({"print-cli", "stdin", "edit", "e", "file", "f"})


class Shell(str, enum.Enum):
    """Target shell for quoting."""

    CMD = "cmd"
    POWERSHELL = "powershell"
    UNIX = "unix"

    @classmethod
    def parse(cls, value: str) -> Shell:
        try:
            return cls(value.lower())
        except ValueError:
            raise InvalidUsageError(f"invalid shell: {value}") from None

    def escape(self, value: Any) -> str:
        """Quote *value* for this shell.

        Strings are used as-is, anything else is rendered as compact JSON.
        The result is wrapped in double quotes; embedded quotes become
        ``\\"`` on unix and ``""`` on cmd and PowerShell.
        """
        if isinstance(value, str):
            text = value
        else:
            text = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
        quote = '\\"' if self is Shell.UNIX else '""'
        return '"' + text.replace('"', quote) + '"'


def format_option(name: str, value: Optional[str]) -> str:
    """Render one option, using a single dash for one-letter names."""
    flag = f"-{name}" if len(name) == 1 else f"--{name}"
    return flag if value is None else f"{flag} {value}"


class CliExpander:
    """Expand supplied options plus a body into command-line options.

    Args:
        shell: Quoting rules to apply to values taken from the body.
        arg_groups: The command's argument groups.
        supplied: Options given on the command line, as ``(name, value)``
            pairs in the order given; ``value`` is ``None`` for flags.
        body: The request body to map back onto options.
        resource_id: Resource ID to emit as ``--id``.
    """

    def __init__(
        self,
        shell: Shell,
        arg_groups: Sequence[ArgGroup],
        supplied: Sequence[tuple[str, Optional[str]]] = (),
        body: Any = None,
        resource_id: Optional[str] = None,
    ) -> None:
        self.shell = shell
        self.arg_groups = list(arg_groups)
        self.supplied = list(supplied)
        self.body = body
        self.resource_id = resource_id

    def expand(self) -> list[str]:
        """Return the rendered options, in order."""
        options: list[str] = []
        for name, value in self.supplied:
            if name in _SKIPPED_OPTIONS:
                continue
            options.append(format_option(name, None if value is None else self.shell.escape(value)))

        if self.resource_id is not None:
            options.append(format_option(ID_OPTION, self.shell.escape(self.resource_id)))

        if self.body is None:
            return options
        for group in self.arg_groups:
            if group.name == "":
                continue
            for arg in group.args:
                root, *members = arg.var.split(".")
                if not (root.startswith("$") and "parameters" in root.lower()):
                    continue
                if not arg.options:
                    continue
                found, value = _find_value(self.body, members)
                if found:
                    options.append(format_option(arg.options[0], self.shell.escape(value)))
        return options


def _find_value(value: Any, members: Sequence[str]) -> tuple[bool, Any]:
    """Follow *members* through objects (by key) and arrays (by index)."""
    for member in members:
        if isinstance(value, dict):
            if member not in value:
                return False, None
            value = value[member]
        elif isinstance(value, list):
            if not member.isdigit() or int(member) >= len(value):
                return False, None
            value = value[int(member)]
        else:
            return False, None
    return True, value
