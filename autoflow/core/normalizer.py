"""
Trigger Payload Normalizer

Maps the raw event payload of any trigger type into one canonical Context.
Never raises: every field has a safe default, so an empty or partial payload
still produces a complete Context. The raw payload is not modified.
"""

import copy
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from .context import Context, Contact, Opportunity
from .nodes import Trigger

logger = logging.getLogger(__name__)

MetaExtractor = Callable[[Trigger, Dict[str, Any], Opportunity], Dict[str, Any]]


# ============================================================================
# FIELD COERCION
# ============================================================================

def _text(value: Any) -> str:
    """Falsy -> '', anything else -> str."""
    if not value:
        return ""
    return value if isinstance(value, str) else str(value)


def _number(value: Any) -> float:
    """Numbers pass through, numeric strings are parsed, anything else is 0."""
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, (int, float)):
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0


def _mapping(value: Any) -> Dict[str, Any]:
    return copy.deepcopy(value) if isinstance(value, dict) else {}


def _tags(value: Any) -> List[str]:
    """Tags arrive as a list, or as a comma separated string from form posts."""
    if isinstance(value, str):
        return [t.strip() for t in value.split(",") if t.strip()]
    if isinstance(value, (list, tuple, set)):
        return [str(t) for t in value if t not in (None, "")]
    return []


def _split_name(name: Any) -> tuple:
    """'Jane van Dyke' -> ('Jane', 'van Dyke')"""
    if not isinstance(name, str) or not name.strip():
        return "", ""
    first, _, rest = name.strip().partition(" ")
    return first, rest.strip()


# ============================================================================
# TRIGGER-SPECIFIC META
# ============================================================================

def _tag_meta(trigger, raw, opportunity):
    return {"tag": _text(raw.get("tag") or trigger.condition.get("tag"))}


def _email_engagement_meta(trigger, raw, opportunity):
    return {
        "campaign_id": _text(raw.get("campaign_id")),
        "link_url": _text(raw.get("link_url")),
    }


def _no_response_meta(trigger, raw, opportunity):
    return {"days_since_last_contact": _number(raw.get("days"))}


def _stage_change_meta(trigger, raw, opportunity):
    return {
        "previous_stage": _text(raw.get("previous_stage")),
        "new_stage": _text(raw.get("new_stage")) or opportunity.stage,
    }


def _form_meta(trigger, raw, opportunity):
    return {
        "form_id": _text(raw.get("form_id")),
        "form_data": _mapping(raw.get("form_data")),
    }


def _appointment_meta(trigger, raw, opportunity):
    return {
        "appointment_status": _text(raw.get("appointment_status")),
        "appointment_date": _text(raw.get("appointment_date")),
    }


def _field_meta(field: str, coerce: Callable[[Any], Any] = _text) -> MetaExtractor:
    """Extractor that copies one raw field into meta."""
    def extract(trigger, raw, opportunity):
        return {field: coerce(raw.get(field))}
    return extract


TRIGGER_META_EXTRACTORS: Dict[str, MetaExtractor] = {
    "tag_added": _tag_meta,
    "tag_removed": _tag_meta,
    "email_opened": _email_engagement_meta,
    "email_clicked": _email_engagement_meta,
    "trigger_link_clicked": _email_engagement_meta,
    "no_response": _no_response_meta,
    "opportunity_stage_changed": _stage_change_meta,
    "form_submission": _form_meta,
    "survey_submitted": _form_meta,
    "order_form_submission": _form_meta,
    "appointment_status": _appointment_meta,
    "customer_booked": _appointment_meta,
    "membership_signup": _field_meta("product_name"),
    "category_completed": _field_meta("product_name"),
    "offer_access_granted": _field_meta("product_name"),
    "offer_access_removed": _field_meta("product_name"),
    "document_event": _field_meta("document_status"),
    "inbound_webhook": _field_meta("webhook_data", _mapping),
    "birthday_reminder": _field_meta("reminder_date"),
    "custom_date_reminder": _field_meta("reminder_date"),
    "task_added": _field_meta("task_title"),
    "task_completed": _field_meta("task_title"),
    "note_added": _field_meta("note_content"),
    "call_event": _field_meta("channel"),
    "customer_replied": _field_meta("channel"),
}


# ============================================================================
# NORMALIZER
# ============================================================================

def normalize_trigger_payload(
    trigger: Optional[Trigger],
    raw_payload: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> Context:
    """
    Build the initial Context for a run.

    Args:
        trigger: Workflow trigger (its type selects the extra meta fields)
        raw_payload: Event payload; any shape, may be empty
        now: Timestamp recorded as `triggered_at` (default: current UTC time)

    Returns:
        Fully populated Context

    Example:
        >>> ctx = normalize_trigger_payload(Trigger(type="tag_added"), {"name": "Jane Smith", "tag": "vip"})
        >>> (ctx.contact.first_name, ctx.contact.last_name, ctx.meta["tag"])
        ('Jane', 'Smith', 'vip')
    """
    trigger = trigger or Trigger()
    raw = raw_payload if isinstance(raw_payload, dict) else {}
    now = now or datetime.now(timezone.utc)

    name_first, name_rest = _split_name(raw.get("name"))

    contact = Contact(
        id=_text(raw.get("contact_id") or raw.get("id")),
        email=_text(raw.get("email") or raw.get("contact_email")),
        first_name=_text(raw.get("first_name")) or name_first,
        last_name=_text(raw.get("last_name")) or name_rest,
        company=_text(raw.get("company")),
        phone=_text(raw.get("phone")),
        tags=_tags(raw.get("tags")),
        status=_text(raw.get("status")),
        contact_type=_text(raw.get("contact_type")),
    )

    opportunity = Opportunity(
        id=_text(raw.get("opportunity_id")),
        stage=_text(raw.get("opportunity_stage")),
        value=_number(raw.get("opportunity_value")),
        status=_text(raw.get("opportunity_status")),
        pipeline=_text(raw.get("opportunity_pipeline")),
    )

    meta = _mapping(raw.get("meta"))
    extractor = TRIGGER_META_EXTRACTORS.get(trigger.type or "")
    if extractor:
        meta.update(extractor(trigger, raw, opportunity))

    logger.debug(
        f"Normalized payload for trigger '{trigger.type}'",
        extra={"trigger_type": trigger.type, "meta_keys": sorted(meta.keys())}
    )

    return Context(
        trigger_type=trigger.type or "unknown",
        triggered_at=now.isoformat(),
        contact=contact,
        opportunity=opportunity,
        meta=meta,
    )
