"""
Node Handlers

Each node type maps to a handler with one interface:

    handler(node, context, runtime) -> HandlerOutcome(context, output, branch_taken)

Channel and integration handlers only describe what would have been sent;
no email, SMS or HTTP request leaves the engine. State-changing handlers
delegate to the payload mutator. A type with no registered handler falls back
to `apply_mutation`, so new node types are added by registering a handler
rather than by editing the engine.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, Optional

from .conditions import evaluate_condition
from .context import Context
from .mutations import apply_node_to_context
from .nodes import Node

logger = logging.getLogger(__name__)

EMAIL_PREVIEW_CHARS = 120
SMS_MAX_CHARS = 160
NOTE_PREVIEW_CHARS = 80

EMAIL_TOKENS = ("first_name", "company", "lead_email", "current_date")
SMS_TOKENS = ("first_name", "company")


@dataclass(frozen=True)
class HandlerRuntime:
    """Per-run values handlers may read."""

    now: datetime
    unknown_condition_result: bool = True


@dataclass(frozen=True)
class HandlerOutcome:
    """What a handler produced: the Context to carry forward plus step output."""

    context: Context
    output: Any = None
    branch_taken: Optional[str] = None


NodeHandler = Callable[[Node, Context, HandlerRuntime], HandlerOutcome]

HANDLERS: Dict[str, NodeHandler] = {}


def register_handler(*node_types: str) -> Callable[[NodeHandler], NodeHandler]:
    """Decorator: register a handler for one or more node types."""
    def decorator(handler: NodeHandler) -> NodeHandler:
        for node_type in node_types:
            HANDLERS[node_type] = handler
        return handler
    return decorator


def get_handler(node_type: str) -> NodeHandler:
    """Handler for a node type; unknown types get the generic mutation handler."""
    return HANDLERS.get(node_type, apply_mutation)


# ============================================================================
# TEMPLATING
# ============================================================================

def format_current_date(now: datetime) -> str:
    """Short date as shown in sent emails, e.g. '10/19/2026'."""
    return f"{now.month}/{now.day}/{now.year}"


def interpolate(text: Any, context: Context, now: datetime, tokens: Iterable[str] = EMAIL_TOKENS) -> str:
    """
    Replace {{token}} placeholders with contact values.

    A missing first name renders as "there" ("Hi there"). Contact values of
    any type are rendered with str().
    """
    contact = context.contact
    values = {
        "first_name": str(contact.first_name or "there"),
        "company": str(contact.company or ""),
        "lead_email": str(contact.email or ""),
        "current_date": format_current_date(now),
    }
    rendered = "" if text is None else str(text)
    for token in tokens:
        rendered = rendered.replace("{{" + token + "}}", values[token])
    return rendered


# ============================================================================
# HANDLERS
# ============================================================================

def apply_mutation(node: Node, context: Context, runtime: HandlerRuntime) -> HandlerOutcome:
    """Default handler: apply the node's state change."""
    return HandlerOutcome(
        context=apply_node_to_context(node, context),
        output=f"Applied: {node.display_type}",
    )


@register_handler("wait")
def handle_wait(node, context, runtime):
    cfg = node.config
    output = f"Waiting {cfg.get('wait_days')} {cfg.get('wait_unit') or 'days'}"
    if cfg.get("send_at_time"):
        output += f" (send at {cfg['send_at_time']})"
    return HandlerOutcome(context=context, output=output)


@register_handler("send_email")
def handle_send_email(node, context, runtime):
    cfg = node.config
    subject = cfg.get("subject") or "[Template Email]"
    body = cfg.get("body") or ""
    output = {
        "to": context.contact.email,
        "subject": interpolate(subject, context, runtime.now),
        "body_preview": interpolate(body, context, runtime.now)[:EMAIL_PREVIEW_CHARS],
    }
    if cfg.get("template_id"):
        output["template_id"] = cfg["template_id"]
    return HandlerOutcome(context=context, output=output)


@register_handler("send_sms")
def handle_send_sms(node, context, runtime):
    message = interpolate(node.config.get("body"), context, runtime.now, tokens=SMS_TOKENS)
    return HandlerOutcome(
        context=context,
        output={
            "to": context.contact.phone or context.contact.email,
            "message": message[:SMS_MAX_CHARS],
        },
    )


@register_handler("send_voicemail", "send_dm", "send_review_request", "send_notification")
def handle_dispatch(node, context, runtime):
    return HandlerOutcome(
        context=context,
        output=f"{node.display_type} dispatched to {context.contact.email}",
    )


@register_handler("custom_webhook")
def handle_custom_webhook(node, context, runtime):
    return HandlerOutcome(context=context, output=f"Webhook dispatched -> {node.config.get('url')}")


@register_handler("stripe_charge")
def handle_stripe_charge(node, context, runtime):
    return HandlerOutcome(
        context=context,
        output=f"Stripe charge of ${node.config.get('amount')} queued for {context.contact.email}",
    )


@register_handler("google_sheets")
def handle_google_sheets(node, context, runtime):
    cfg = node.config
    return HandlerOutcome(
        context=context,
        output=f"Google Sheets: {cfg.get('sheets_action') or 'add_row'} on sheet {cfg.get('sheet_id')}",
    )


@register_handler("add_to_workflow", "remove_from_workflow")
def handle_workflow_membership(node, context, runtime):
    cfg = node.config
    target = cfg.get("workflow_name") or cfg.get("scope") or ""
    return HandlerOutcome(
        context=apply_node_to_context(node, context),
        output=f"{node.display_type}: {target}",
    )


@register_handler("add_task")
def handle_add_task(node, context, runtime):
    return HandlerOutcome(
        context=apply_node_to_context(node, context),
        output=f'Task created: "{node.config.get("title")}"',
    )


@register_handler("add_note")
def handle_add_note(node, context, runtime):
    note = str(node.config.get("note") or "")
    return HandlerOutcome(
        context=apply_node_to_context(node, context),
        output=f'Note added: "{note[:NOTE_PREVIEW_CHARS]}"',
    )


@register_handler("condition")
def handle_condition(node, context, runtime):
    # the branch is recorded only; the next node in the list always runs
    passed = evaluate_condition(node, context, default=runtime.unknown_condition_result)
    branch = "YES" if passed else "NO"
    return HandlerOutcome(
        context=context,
        output=f'Condition "{node.config.get("condition_type")}" evaluated to: {branch}',
        branch_taken=branch,
    )
