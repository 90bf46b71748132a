"""Pick the single operation a command invocation dispatches to."""

from __future__ import annotations

from typing import Optional

from azrest.engine.arguments import BoundArgs
from azrest.engine.conditions import condition_for_resource_id, select_condition
from azrest.engine.resource_id import ResourceId
from azrest.exceptions import MetadataIntegrityError, OperationNotFoundError
from azrest.metadata.command import Command, Operation


def select_operation(
    command: Command,
    bound: BoundArgs,
    resource_id: Optional[ResourceId] = None,
) -> Operation:
    """Return the operation the input selects.

    A command without conditions must declare exactly one operation. With
    conditions, the variable comes from *resource_id* when given (template
    match), otherwise from the first condition that holds for *bound*; the
    operation whose ``when`` list contains the variable is returned.

    Raises:
        MetadataIntegrityError: No conditions but not exactly one operation.
        OperationNotFoundError: No variable could be derived, or no
            operation is tagged with it.
    """
    if command.conditions is None:
        if len(command.operations) != 1:
            raise MetadataIntegrityError(
                f"command without conditions must have exactly one operation, "
                f"found {len(command.operations)}"
            )
        return command.operations[0]

    if resource_id is not None:
        variable = condition_for_resource_id(command.operations, resource_id)
    else:
        variable = select_condition(command.conditions, bound)
    if variable is None:
        raise OperationNotFoundError()

    for operation in command.operations:
        if variable in (operation.when or []):
            return operation
    raise OperationNotFoundError()
