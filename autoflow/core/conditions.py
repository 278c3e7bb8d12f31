"""
Condition Evaluator

Pure predicates for "condition" nodes, dispatched on config.condition_type.
Engagement flags (email_opened, link_clicked) and days_since_last_contact are
read from Context.meta; the engine does not track engagement itself, so the
caller injects them.
"""

from typing import Any, Callable, Dict, Optional

from .context import Context
from .nodes import Node, NodeLike, create_node_from_dict

ConditionCheck = Callable[[Dict[str, Any], Context], bool]

DEFAULT_NO_RESPONSE_DAYS = 3


def _has_tag(cfg, context):
    return cfg.get("tag") in context.contact.tags


def _email_opened(cfg, context):
    return bool(context.meta.get("email_opened"))


def _link_clicked(cfg, context):
    return bool(context.meta.get("link_clicked"))


def _as_number(value: Any) -> Optional[float]:
    """float(value), or None when it cannot be read as a number."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _no_response(cfg, context):
    days = _as_number(context.meta.get("days_since_last_contact") or 0)
    threshold = _as_number(cfg.get("no_response_days") or DEFAULT_NO_RESPONSE_DAYS)
    # unreadable numbers never match
    if days is None or threshold is None:
        return False
    return days >= threshold


def _opp_value_gt(cfg, context):
    value = _as_number(context.opportunity.value or 0)
    threshold = _as_number(cfg.get("opp_value") or 0)
    if value is None or threshold is None:
        return False
    return value > threshold


def _contact_status(cfg, context):
    return context.contact.status == cfg.get("contact_status")


CONDITION_CHECKS: Dict[str, ConditionCheck] = {
    "has_tag": _has_tag,
    "email_opened": _email_opened,
    "link_clicked": _link_clicked,
    "no_response": _no_response,
    "opp_value_gt": _opp_value_gt,
    "contact_status": _contact_status,
}


def evaluate_condition(node: NodeLike, context: Context, default: bool = True) -> bool:
    """
    Evaluate a condition node against a Context.

    Args:
        node: Condition node
        context: Current run state (read only)
        default: Result for an unknown or unset condition_type

    Returns:
        True for the YES branch, False for NO
    """
    node = create_node_from_dict(node)
    check = CONDITION_CHECKS.get(node.config.get("condition_type"))
    if check is None:
        return default
    return bool(check(node.config, context))
