"""
Run Context

The Context is the contact/opportunity/meta state threaded through one
automation run. It is created by the normalizer and never changed in place:
each node that changes state gets a brand-new Context from `Context.evolve`,
so every Step keeps a valid snapshot of the state it produced.

Example:
    >>> ctx = Context(contact=Contact(email="jane@example.com", tags=["prospect"]))
    >>> tagged = ctx.evolve(contact={"tags": ctx.contact.tags + ["vip"]})
    >>> ctx.contact.tags
    ['prospect']
    >>> tagged.contact.tags
    ['prospect', 'vip']
"""

import copy
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


def unique_tags(tags: List[str]) -> List[str]:
    """Drop duplicate tags, keeping the first occurrence."""
    seen = set()
    result = []
    for tag in tags:
        if tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result


class Contact(BaseModel):
    """
    Contact the automation runs for.

    Besides the declared fields, a contact carries free-form fields written by
    `update_contact`, `assign_salesperson` (assigned_salesperson) and
    `move_to_campaign` (campaign_id).
    """

    id: str = ""
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    company: str = ""
    phone: str = ""
    tags: List[str] = Field(default_factory=list)
    status: str = ""
    contact_type: str = ""

    class Config:
        frozen = True
        extra = "allow"

    @field_validator("tags")
    @classmethod
    def tags_are_a_set(cls, v: List[str]) -> List[str]:
        return unique_tags(v)

    def get(self, field: str, default: Any = None) -> Any:
        """Read a declared or free-form field."""
        return getattr(self, field, default)


class Opportunity(BaseModel):
    """Deal attached to the contact."""

    id: str = ""
    stage: str = ""
    value: float = 0
    status: str = ""
    pipeline: str = ""

    class Config:
        frozen = True
        extra = "allow"


class Context(BaseModel):
    """Canonical, immutable-per-step snapshot of one run's state."""

    trigger_type: str = "unknown"
    triggered_at: str = ""
    contact: Contact = Field(default_factory=Contact)
    opportunity: Opportunity = Field(default_factory=Opportunity)
    meta: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        frozen = True

    def evolve(
        self,
        contact: Optional[Dict[str, Any]] = None,
        opportunity: Optional[Dict[str, Any]] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> "Context":
        """
        Return a deep, independent copy with the given section updates applied.

        Args:
            contact: Fields to set on the contact (free-form keys allowed)
            opportunity: Fields to set on the opportunity
            meta: Keys to set in meta

        Returns:
            New Context; `self` is left untouched.
        """
        base = self.model_copy(deep=True)
        updates: Dict[str, Any] = {}

        if contact:
            contact = copy.deepcopy(contact)
            if "tags" in contact:
                contact["tags"] = unique_tags(contact["tags"])
            updates["contact"] = base.contact.model_copy(update=contact)
        if opportunity:
            updates["opportunity"] = base.opportunity.model_copy(update=copy.deepcopy(opportunity))
        if meta:
            updates["meta"] = {**base.meta, **copy.deepcopy(meta)}

        return base.model_copy(update=updates)

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready deep copy (for logs and API responses)."""
        return self.model_dump(mode="json")
