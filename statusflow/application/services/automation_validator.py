"""Structural validation of automation definitions.

Runs before a definition is stored, so the executor only ever sees node
documents of a known shape. Status values inside actions are not checked
here; the executor checks them against the resolved target's vocabulary.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from statusflow.domain.enums import (
    ActionTargetType,
    ActionType,
    ConditionOperator,
    EntityType,
    NodeType,
)
from statusflow.domain.exceptions import ValidationException


def validate_trigger(object_type: str, to_status: str) -> None:
    if object_type not in EntityType.values():
        raise ValidationException(
            f"Invalid trigger object type: {object_type}", field="trigger.objectType"
        )
    if not to_status or not to_status.strip():
        raise ValidationException("Trigger toStatus is required", field="trigger.toStatus")


def validate_nodes(nodes: Sequence[Mapping[str, Any]]) -> None:
    """Raise ValidationException for the first structural problem found."""
    if not nodes:
        raise ValidationException("Automation must have at least one node", field="nodes")
    seen: set[str] = set()
    for index, node in enumerate(nodes):
        where = f"nodes[{index}]"
        node_id = node.get("id")
        if not isinstance(node_id, str) or not node_id.strip():
            raise ValidationException("Node id is required", field=f"{where}.id")
        if node_id in seen:
            raise ValidationException(f"Duplicate node id: {node_id}", field=f"{where}.id")
        seen.add(node_id)

        node_type = node.get("type")
        condition = node.get("condition")
        action = node.get("action")
        if condition and action:
            raise ValidationException(
                "Node cannot have both condition and action", field=where
            )
        if node_type == NodeType.CONDITION:
            if not condition:
                raise ValidationException(
                    "Condition node must have a condition", field=f"{where}.condition"
                )
            _validate_condition(condition, where)
        elif node_type == NodeType.ACTION:
            if not action:
                raise ValidationException(
                    "Action node must have an action", field=f"{where}.action"
                )
            _validate_action(action, where)
        else:
            raise ValidationException(f"Invalid node type: {node_type}", field=f"{where}.type")


def _validate_condition(condition: Mapping[str, Any], where: str) -> None:
    if not condition.get("field"):
        raise ValidationException("Condition field is required", field=f"{where}.condition.field")
    if condition.get("operator") not in ConditionOperator.values():
        raise ValidationException(
            f"Invalid condition operator: {condition.get('operator')}",
            field=f"{where}.condition.operator",
        )


def _validate_action(action: Mapping[str, Any], where: str) -> None:
    if action.get("targetType") not in ActionTargetType.values():
        raise ValidationException(
            f"Invalid action target: {action.get('targetType')}",
            field=f"{where}.action.targetType",
        )
    if action.get("actionType") not in ActionType.values():
        raise ValidationException(
            f"Invalid action type: {action.get('actionType')}",
            field=f"{where}.action.actionType",
        )
    if not action.get("newStatus"):
        raise ValidationException("Action newStatus is required", field=f"{where}.action.newStatus")
