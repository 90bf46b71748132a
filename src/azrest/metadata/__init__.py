"""Command metadata: the index, command documents, schemas, and stores.

Everything here is read-only value data. Documents are validated once on
load (see :mod:`azrest.metadata.command` for the integrity rules) and then
shared by reference.
"""

from azrest.metadata.command import (
    Arg,
    ArgGroup,
    Command,
    Condition,
    GroupOperator,
    HasValueOperator,
    NotOperator,
    Operation,
    Response,
)
from azrest.metadata.index import CommandLocation, Index, locate_command
from azrest.metadata.schema import Schema, SchemaKind, classify_type
from azrest.metadata.store import (
    FileMetadataStore,
    MemoryMetadataStore,
    MetadataStore,
    parse_command,
    parse_index,
)

__all__ = [
    "Arg",
    "ArgGroup",
    "Command",
    "CommandLocation",
    "Condition",
    "FileMetadataStore",
    "GroupOperator",
    "HasValueOperator",
    "Index",
    "MemoryMetadataStore",
    "MetadataStore",
    "NotOperator",
    "Operation",
    "Response",
    "Schema",
    "SchemaKind",
    "classify_type",
    "locate_command",
    "parse_command",
    "parse_index",
]
