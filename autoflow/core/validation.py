"""
Workflow Validation

Structural checks on a workflow definition. Nothing here executes a node or
looks at contact data; it only checks that each node's config carries the
fields its type needs. Problems are returned as lists, never raised, so the
builder can show all of them at once and decide whether to block a run.

Rules are registered per node type in NODE_RULES; a type without rules
yields no issues.
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from pydantic import BaseModel

from .exceptions import WorkflowValidationError
from .nodes import Edge, Node, NodeLike, TriggerLike, coerce_trigger, create_node_from_dict

logger = logging.getLogger(__name__)

NodeRule = Callable[[Dict[str, Any]], List[str]]

TRIGGER_NOT_SET = "Trigger is not set"
NO_NODES = "Add at least one action node"


class ValidationIssue(BaseModel):
    """One problem found in a workflow definition."""

    node_id: Optional[str] = None
    message: str
    position: Optional[int] = None  # 1-based node position, None for workflow-level issues

    class Config:
        frozen = True


# ============================================================================
# NODE RULES
# ============================================================================

def _as_number(value: Any) -> Optional[float]:
    """Numeric config value, or None when missing or not a number."""
    if isinstance(value, bool) or value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _require(field: str, message: str) -> NodeRule:
    """Rule: config[field] must be present and non-empty."""
    def rule(cfg: Dict[str, Any]) -> List[str]:
        return [] if cfg.get(field) else [message]
    return rule


def _send_email_rule(cfg):
    errors = []
    if cfg.get("template_id"):
        return errors
    if not cfg.get("subject"):
        errors.append("Subject is required for custom emails")
    if not cfg.get("body"):
        errors.append("Body is required for custom emails")
    return errors


def _wait_rule(cfg):
    errors = []
    wait_days = _as_number(cfg.get("wait_days"))
    if wait_days is None or wait_days < 1:
        errors.append("Wait duration must be at least 1")
    if not cfg.get("wait_unit"):
        errors.append("Wait unit is required")
    return errors


# condition_type -> (required field, message)
CONDITION_REQUIREMENTS = {
    "has_tag": ("tag", "Tag is required"),
    "opp_value_gt": ("opp_value", "Value is required"),
    "contact_status": ("contact_status", "Status is required"),
}


def _condition_rule(cfg):
    condition_type = cfg.get("condition_type")
    if not condition_type:
        return ["Condition type is required"]
    requirement = CONDITION_REQUIREMENTS.get(condition_type)
    if requirement and not cfg.get(requirement[0]):
        return [requirement[1]]
    return []


def _stripe_charge_rule(cfg):
    amount = _as_number(cfg.get("amount"))
    if amount is None or amount <= 0:
        return ["Valid charge amount is required"]
    return []


NODE_RULES: Dict[str, NodeRule] = {
    "send_email": _send_email_rule,
    "wait": _wait_rule,
    "condition": _condition_rule,
    "add_tag": _require("tag", "Tag name is required"),
    "remove_tag": _require("tag", "Tag name is required"),
    "assign_salesperson": _require("salesperson", "Salesperson is required"),
    "move_to_campaign": _require("campaign_id", "Campaign is required"),
    "change_status": _require("new_status", "New status is required"),
    "create_opportunity": _require("stage", "Stage is required"),
    "send_sms": _require("body", "SMS message is required"),
    "send_voicemail": _require("script", "Voicemail script is required"),
    "send_dm": _require("body", "Message is required"),
    "add_task": _require("title", "Task title is required"),
    "send_notification": _require("message", "Notification message is required"),
    "custom_webhook": _require("url", "Webhook URL is required"),
    "stripe_charge": _stripe_charge_rule,
    "google_sheets": _require("sheet_id", "Sheet URL or ID is required"),
}


def register_node_rule(node_type: str, rule: NodeRule) -> None:
    """Add or replace the validation rule for a node type."""
    NODE_RULES[node_type] = rule


# ============================================================================
# VALIDATORS
# ============================================================================

def validate_node(node: NodeLike) -> List[str]:
    """
    Check that a node's config is structurally complete.

    Args:
        node: Node (or node dict)

    Returns:
        Human-readable messages; empty if the node is valid. A node dict
        that cannot be parsed yields its parse error as the only message.
    """
    try:
        node = create_node_from_dict(node)
    except WorkflowValidationError as e:
        return [e.message]
    rule = NODE_RULES.get(node.type)
    if rule is None:
        return []
    return rule(node.config)


def validate_workflow(trigger: TriggerLike, nodes: Optional[Iterable[NodeLike]]) -> List[ValidationIssue]:
    """
    Validate a whole workflow.

    Issue order is fixed: trigger issue, empty-workflow issue, then node
    issues in node order, each prefixed with "Node {position} ({type}): ".

    Example:
        >>> issues = validate_workflow({}, [])
        >>> [i.message for i in issues]
        ['Trigger is not set', 'Add at least one action node']
    """
    issues: List[ValidationIssue] = []
    nodes = list(nodes or [])

    try:
        trigger_type = coerce_trigger(trigger).type
    except WorkflowValidationError:
        trigger_type = None
    if not trigger_type:
        issues.append(ValidationIssue(node_id="trigger", message=TRIGGER_NOT_SET))

    if not nodes:
        issues.append(ValidationIssue(node_id=None, message=NO_NODES))

    for position, raw_node in enumerate(nodes, start=1):
        try:
            node = create_node_from_dict(raw_node)
        except WorkflowValidationError as e:
            issues.append(ValidationIssue(
                node_id=e.node_id,
                message=f"Node {position}: {e.message}",
                position=position,
            ))
            continue

        for message in validate_node(node):
            issues.append(ValidationIssue(
                node_id=node.id,
                message=f"Node {position} ({node.type}): {message}",
                position=position,
            ))

    if issues:
        logger.debug(f"Workflow validation found {len(issues)} issue(s)")
    return issues


def validate_edges(nodes: Iterable[NodeLike], edges: Optional[Iterable[Any]]) -> List[ValidationIssue]:
    """
    Report edges that point at node ids missing from the workflow.

    Edges are not followed by the executor; this check only keeps the
    builder's canvas consistent.
    """
    issues: List[ValidationIssue] = []
    node_ids = set()
    for raw_node in nodes or []:
        try:
            node_ids.add(create_node_from_dict(raw_node).id)
        except WorkflowValidationError:
            continue

    for index, raw_edge in enumerate(edges or [], start=1):
        try:
            edge = raw_edge if isinstance(raw_edge, Edge) else Edge(**raw_edge)
        except Exception as e:
            issues.append(ValidationIssue(message=f"Edge {index}: invalid edge ({e})"))
            continue

        label = edge.id or str(index)
        for endpoint in (edge.source, edge.target):
            if endpoint not in node_ids:
                issues.append(ValidationIssue(
                    node_id=endpoint,
                    message=f"Edge {label} references unknown node '{endpoint}'",
                ))
    return issues
