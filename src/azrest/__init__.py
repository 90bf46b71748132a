"""azrest -- Invoke Azure REST operations from declarative command metadata.

This package turns a metadata bundle (a command index plus one JSON document
per command and API version) into a navigable command hierarchy, and maps
the values supplied on the command line into a single, correctly-formed HTTP
request whose response is routed back to the user.

Typical workflow::

    azrest api resources group create --help
    azrest api resources group create -g MyRG --subscription 000... -l westus

Modules:
    app: Typer application factory and CLI entry point.
    metadata: Command index, command documents, and the metadata store.
    engine: Operation selection, request building, and response routing.
    models: Pydantic configuration models.
    config: XDG-aware configuration and profile management.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
