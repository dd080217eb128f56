"""Automation domain entity.

An automation is a trigger predicate plus a graph of condition and action
nodes. Nodes are kept in an arena keyed by node id; edges are plain id
references (next_node_id / else_node_id), so a walk is a sequence of id
lookups and a cycle is something the interpreter detects, not something
the structure rules out.

Persisted node documents use the camelCase keys of the stored contract
({id, type, condition?, action?, nextNodeId?, elseNodeId?}); from_dict /
to_dict translate between that shape and these dataclasses.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from statusflow.domain.enums import ConditionOperator, NodeType

# Distinguishes "field absent on the object" from a stored None.
_MISSING: Any = object()


def _strict_equals(actual: Any, expected: Any) -> bool:
    """Equality without cross-type coercion (True never equals 1, "1" never equals 1)."""
    if actual is _MISSING:
        return False
    if isinstance(actual, bool) or isinstance(expected, bool):
        return type(actual) is type(expected) and actual == expected
    numeric = (int, float)
    if isinstance(actual, numeric) and isinstance(expected, numeric):
        return actual == expected
    if type(actual) is not type(expected):
        return False
    return actual == expected


@dataclass(frozen=True)
class AutomationTrigger:
    """(object type, optional from-status, to-status) predicate."""

    object_type: str
    to_status: str
    from_status: str | None = None

    def matches(self, object_type: str, from_status: str | None, to_status: str) -> bool:
        """Return whether a status change activates this trigger.

        An unset from_status matches any origin status.
        """
        if self.object_type != object_type or self.to_status != to_status:
            return False
        return self.from_status is None or self.from_status == from_status


@dataclass(frozen=True)
class ConditionSpec:
    field: str
    operator: str
    value: Any = None

    def evaluate(self, obj: Mapping[str, Any]) -> bool:
        """Evaluate the operator against obj[field].

        Unknown operators evaluate to False.
        """
        actual = obj.get(self.field, _MISSING)
        match self.operator:
            case ConditionOperator.EQUALS:
                return _strict_equals(actual, self.value)
            case ConditionOperator.NOT_EQUALS:
                return not _strict_equals(actual, self.value)
            case ConditionOperator.CONTAINS:
                if isinstance(actual, str) and isinstance(self.value, str):
                    return self.value in actual
                if isinstance(actual, list):
                    return any(_strict_equals(item, self.value) for item in actual)
                return False
            case ConditionOperator.EXISTS:
                return actual is not _MISSING and actual is not None
            case _:
                return False

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "operator": self.operator, "value": self.value}


@dataclass(frozen=True)
class ActionSpec:
    target_type: str
    action_type: str
    new_status: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "targetType": self.target_type,
            "actionType": self.action_type,
            "newStatus": self.new_status,
        }


@dataclass(frozen=True)
class AutomationNode:
    """A single graph node. Condition nodes branch; action nodes only use next_node_id."""

    id: str
    type: str
    condition: ConditionSpec | None = None
    action: ActionSpec | None = None
    next_node_id: str | None = None
    else_node_id: str | None = None

    @property
    def is_condition(self) -> bool:
        return self.type == NodeType.CONDITION

    @property
    def is_action(self) -> bool:
        return self.type == NodeType.ACTION

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AutomationNode":
        """Build a node from its stored document form."""
        condition = data.get("condition")
        action = data.get("action")
        return cls(
            id=data["id"],
            type=data["type"],
            condition=(
                ConditionSpec(
                    field=condition["field"],
                    operator=condition["operator"],
                    value=condition.get("value"),
                )
                if condition
                else None
            ),
            action=(
                ActionSpec(
                    target_type=action["targetType"],
                    action_type=action["actionType"],
                    new_status=action["newStatus"],
                )
                if action
                else None
            ),
            next_node_id=data.get("nextNodeId"),
            else_node_id=data.get("elseNodeId"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "type": self.type}
        if self.condition is not None:
            data["condition"] = self.condition.to_dict()
        if self.action is not None:
            data["action"] = self.action.to_dict()
        if self.next_node_id is not None:
            data["nextNodeId"] = self.next_node_id
        if self.else_node_id is not None:
            data["elseNodeId"] = self.else_node_id
        return data


@dataclass(frozen=True)
class AutomationEntity:
    """Read-only view of an automation as the executor sees it."""

    id: str
    org_id: str
    name: str
    is_active: bool
    trigger: AutomationTrigger
    nodes: Sequence[AutomationNode]
    _arena: dict[str, AutomationNode] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        arena: dict[str, AutomationNode] = {}
        for node in self.nodes:
            # First definition wins if ids repeat; creation validation rejects duplicates.
            arena.setdefault(node.id, node)
        object.__setattr__(self, "_arena", arena)

    @property
    def entry_node_id(self) -> str | None:
        """Id of the first node in definition order, where every walk starts."""
        return self.nodes[0].id if self.nodes else None

    def get_node(self, node_id: str) -> AutomationNode | None:
        return self._arena.get(node_id)

    @classmethod
    def from_documents(
        cls,
        *,
        id: str,
        org_id: str,
        name: str,
        is_active: bool,
        trigger: AutomationTrigger,
        nodes: Sequence[Mapping[str, Any]],
    ) -> "AutomationEntity":
        return cls(
            id=id,
            org_id=org_id,
            name=name,
            is_active=is_active,
            trigger=trigger,
            nodes=tuple(AutomationNode.from_dict(n) for n in nodes),
        )
