"""Command-line front end for the ``azrest api`` tree.

* :mod:`~azrest.cli.param_mapper` -- metadata arguments to Typer options.
* :mod:`~azrest.cli.command_tree` -- lazy Typer tree built from the index.
* :mod:`~azrest.cli.runner` -- executes a collected :class:`Invocation`.
"""

from azrest.cli.command_tree import Invocation, api_position, build_api_app, target_segments
from azrest.cli.param_mapper import sanitize_param_name
from azrest.cli.runner import render_cli, run_invocation

__all__ = [
    "Invocation",
    "api_position",
    "build_api_app",
    "render_cli",
    "run_invocation",
    "sanitize_param_name",
    "target_segments",
]
