"""Built-in CLI sub-commands for azrest.

* :mod:`~azrest.commands.config` -- view and modify global settings and
  endpoint profiles.
* :mod:`~azrest.commands.inspect` -- examine command documents and body
  schemas of the active metadata bundle.

Each module exports a :class:`typer.Typer` sub-application registered on
the root app by :func:`azrest.app.main`.
"""
