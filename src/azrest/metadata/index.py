"""Hierarchical command index and command location.

The index is the entry point into a metadata bundle. Its top level maps
service names to :class:`CommandGroup` nodes; groups nest further groups
and finally hold :class:`CommandEntry` leaves listing the API versions a
command document exists for::

    {
      "help": {"short": "Azure CLI"},
      "commandGroups": {
        "resources": {
          "commandGroups": {
            "group": {"commands": {"create": {"versions": ["2024-11-01"]}}}
          }
        }
      }
    }

:func:`locate_command` walks positional segments through that tree and
produces the identifier of the command document to load. It is pure: the
same index and segments always yield the same result.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from azrest.exceptions import (
    IncompleteCommandError,
    MetadataIntegrityError,
    UnknownSegmentError,
    VersionNotFoundError,
)
from azrest.metadata.command import Help

_FROZEN = ConfigDict(frozen=True, populate_by_name=True)


class CommandEntry(BaseModel):
    """A leaf command and the API versions it is available in."""

    model_config = _FROZEN

    help: Optional[Help] = None
    versions: list[str] = Field(default_factory=list)

    @property
    def latest_version(self) -> Optional[str]:
        return max(self.versions) if self.versions else None


class CommandGroup(BaseModel):
    """A namespace node holding child groups and/or commands."""

    model_config = _FROZEN

    help: Optional[Help] = None
    command_groups: dict[str, CommandGroup] = Field(
        default_factory=dict, alias="commandGroups"
    )
    commands: dict[str, CommandEntry] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_names(self) -> CommandGroup:
        clash = set(self.command_groups) & set(self.commands)
        if clash:
            raise ValueError(
                f"names used both as group and command: {', '.join(sorted(clash))}"
            )
        return self


class Index(BaseModel):
    """Root of the command index; its groups are the services."""

    model_config = _FROZEN

    help: Optional[Help] = None
    command_groups: dict[str, CommandGroup] = Field(
        default_factory=dict, alias="commandGroups"
    )

    def node_at(self, segments: Sequence[str]) -> Union[Index, CommandGroup, CommandEntry, None]:
        """Return the node addressed by *segments* without raising.

        Used by the CLI to render help for partial paths. Returns ``None``
        when a segment does not exist.
        """
        node: Union[Index, CommandGroup, CommandEntry] = self
        for segment in segments:
            if isinstance(node, CommandEntry):
                return None
            if segment in node.command_groups:
                node = node.command_groups[segment]
            elif isinstance(node, CommandGroup) and segment in node.commands:
                node = node.commands[segment]
            else:
                return None
        return node


CommandGroup.model_rebuild()


@dataclass(frozen=True)
class CommandLocation:
    """Result of :func:`locate_command`.

    Attributes:
        segments: The command path that was consumed (service ... command).
        version: The resolved API version.
        entry: The index leaf for the command.
    """

    segments: tuple[str, ...]
    version: str
    entry: CommandEntry

    @property
    def document_id(self) -> str:
        """Deterministic identifier ``service_group..._command_version``."""
        return "_".join((*self.segments, self.version))


def locate_command(
    index: Index,
    segments: Sequence[str],
    version: Optional[str] = None,
) -> CommandLocation:
    """Resolve positional *segments* to a command document.

    Descends one segment at a time, preferring a child group over a command
    of the same name at each level. The walk stops at the first command;
    any segment after it is rejected.

    Args:
        index: The loaded command index.
        segments: Positional input, starting with the service name.
        version: Requested API version. When omitted, the maximum available
            version is used (versions are date strings, so string order is
            release order).

    Returns:
        The :class:`CommandLocation` of the command document.

    Raises:
        IncompleteCommandError: The segments end on a group.
        UnknownSegmentError: A segment matches nothing, or follows the command.
        VersionNotFoundError: *version* is not offered by the command.
        MetadataIntegrityError: The command lists no versions at all.
    """
    if not segments:
        raise IncompleteCommandError("no command given")

    first = segments[0]
    if first not in index.command_groups:
        raise UnknownSegmentError(f"unknown service: {first}")
    node = index.command_groups[first]

    for position, segment in enumerate(segments[1:], start=1):
        if segment in node.command_groups:
            node = node.command_groups[segment]
            continue
        if segment in node.commands:
            entry = node.commands[segment]
            extra = segments[position + 1:]
            if extra:
                raise UnknownSegmentError(f"unknown argument: {extra[0]}")
            consumed = tuple(segments[: position + 1])
            return CommandLocation(
                segments=consumed,
                version=_resolve_version(consumed, entry, version),
                entry=entry,
            )
        raise UnknownSegmentError(f"unknown command or group: {segment}")

    path = " ".join(segments)
    raise IncompleteCommandError(f"'{path}' is a command group, a subcommand is required")


def _resolve_version(
    segments: tuple[str, ...],
    entry: CommandEntry,
    requested: Optional[str],
) -> str:
    if requested is not None:
        if requested not in entry.versions:
            raise VersionNotFoundError(f"api version {requested} not available")
        return requested
    latest = entry.latest_version
    if latest is None:
        raise MetadataIntegrityError(f"command {' '.join(segments)} has no versions")
    return latest
