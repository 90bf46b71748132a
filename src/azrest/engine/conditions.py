"""Condition evaluation: which operation does the input point at?

A command with several operations (``list`` by resource group vs.
``list-all`` by subscription) tags each operation with a condition
variable. The variable is derived either from the bound arguments, by
evaluating the condition trees in order, or from a full resource ID, by
matching it against each operation's path template.

Operator shapes are validated when the document loads, so evaluation here
cannot meet a malformed tree.
"""

from __future__ import annotations

from typing import Optional, Sequence

from azrest.engine.arguments import BoundArgs
from azrest.engine.resource_id import ResourceId
from azrest.metadata.command import (
    Condition,
    ConditionOperator,
    GroupOperator,
    HasValueOperator,
    NotOperator,
    Operation,
)


def evaluate(operator: ConditionOperator, bound: BoundArgs) -> bool:
    """Evaluate a condition tree against the bound arguments.

    ``hasValue`` is true iff its argument is bound; ``and``/``or``
    short-circuit; ``not`` negates its child.
    """
    if isinstance(operator, HasValueOperator):
        return bound.has(operator.arg)
    if isinstance(operator, NotOperator):
        return not evaluate(operator.operator, bound)
    if isinstance(operator, GroupOperator):
        results = (evaluate(child, bound) for child in operator.operators)
        return all(results) if operator.type == "and" else any(results)
    raise TypeError(f"not a condition operator: {operator!r}")


def select_condition(conditions: Sequence[Condition], bound: BoundArgs) -> Optional[str]:
    """Return the ``var`` of the first condition that holds, or ``None``."""
    for condition in conditions:
        if evaluate(condition.operator, bound):
            return condition.var
    return None


def condition_for_resource_id(
    operations: Sequence[Operation],
    resource_id: ResourceId,
) -> Optional[str]:
    """Derive the condition variable from a full resource ID.

    The first operation whose path template matches the ID wins, and its
    *last* ``when`` tag is used: an operation shared by several
    disambiguations lists its most specific variable last.
    """
    for operation in operations:
        if operation.http is None:
            continue
        if resource_id.matches(operation.http.path, operation.method):
            if operation.when:
                return operation.when[-1]
            return None
    return None
