"""
Payload Mutator

`apply_node_to_context(node, context)` returns a new Context with the one
change a state-changing node makes. The input Context is never modified.

Channel and integration nodes (send_sms, custom_webhook, ...) and unknown
node types change nothing: they get an unchanged copy back.
"""

import logging
from typing import Any, Callable, Dict

from .context import Contact, Context
from .exceptions import NodeExecutionError
from .nodes import NodeLike, create_node_from_dict

logger = logging.getLogger(__name__)

Mutation = Callable[[Dict[str, Any], Context], Context]

# update_contact may not overwrite these; tags only change through add_tag/remove_tag
PROTECTED_CONTACT_FIELDS = frozenset(["tags"])


def _add_tag(cfg, context):
    tag = cfg.get("tag")
    if not tag or tag in context.contact.tags:
        return context.evolve()
    return context.evolve(contact={"tags": [*context.contact.tags, tag]})


def _remove_tag(cfg, context):
    tags = [t for t in context.contact.tags if t != cfg.get("tag")]
    return context.evolve(contact={"tags": tags})


def _change_status(cfg, context):
    return context.evolve(contact={"status": cfg.get("new_status")})


def _update_contact(cfg, context):
    field = cfg.get("field")
    if not field or "field_value" not in cfg:
        return context.evolve()
    if field in PROTECTED_CONTACT_FIELDS:
        raise NodeExecutionError(f"Contact field '{field}' cannot be set by update_contact")

    value = cfg["field_value"]
    if value is None and field in Contact.model_fields:
        # null clears a declared field back to its default
        value = Contact.model_fields[field].get_default(call_default_factory=True)
    return context.evolve(contact={field: value})


def _assign_salesperson(cfg, context):
    return context.evolve(contact={"assigned_salesperson": cfg.get("salesperson")})


def _create_opportunity(cfg, context):
    value = cfg.get("value") or 0
    try:
        value = float(value)
    except (TypeError, ValueError):
        raise NodeExecutionError(f"Opportunity value must be a number, got {value!r}")
    return context.evolve(opportunity={
        "stage": cfg.get("stage"),
        "value": value,
        "pipeline": cfg.get("pipeline") or "",
        "status": "active",
    })


def _update_opportunity(cfg, context):
    changes = {}
    if cfg.get("stage"):
        changes["stage"] = cfg["stage"]
    if cfg.get("status"):
        changes["status"] = cfg["status"]
    return context.evolve(opportunity=changes)


def _move_to_campaign(cfg, context):
    return context.evolve(contact={"campaign_id": cfg.get("campaign_id")})


def _meta_annotation(meta_key: str, config_key: str) -> Mutation:
    """Mutation that records config[config_key] as meta[meta_key]."""
    def mutate(cfg, context):
        return context.evolve(meta={meta_key: cfg.get(config_key)})
    return mutate


MUTATIONS: Dict[str, Mutation] = {
    "add_tag": _add_tag,
    "remove_tag": _remove_tag,
    "change_status": _change_status,
    "update_contact": _update_contact,
    "assign_salesperson": _assign_salesperson,
    "create_opportunity": _create_opportunity,
    "update_opportunity": _update_opportunity,
    "move_to_campaign": _move_to_campaign,
    "add_note": _meta_annotation("last_note", "note"),
    "add_task": _meta_annotation("last_task", "title"),
    "send_notification": _meta_annotation("last_notification_to", "notify_user"),
    "add_to_workflow": _meta_annotation("added_to_workflow", "workflow_name"),
    "remove_from_workflow": _meta_annotation("removed_from_workflow", "scope"),
}


def apply_node_to_context(node: NodeLike, context: Context) -> Context:
    """
    Apply one node's state change.

    Args:
        node: Node to apply
        context: Current state (left untouched)

    Returns:
        New Context

    Raises:
        NodeExecutionError: If the node's config cannot be applied
    """
    node = create_node_from_dict(node)
    mutation = MUTATIONS.get(node.type)
    if mutation is None:
        return context.evolve()

    try:
        return mutation(node.config, context)
    except NodeExecutionError as e:
        e.node_id = e.node_id or node.id
        e.node_type = e.node_type or node.type
        raise
