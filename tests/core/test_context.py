"""
Unit Tests for Context

Tests cover:
- Contact / Opportunity defaults
- Tag de-duplication
- Context.evolve copies (the source Context is never changed)
- Free-form contact fields
- snapshot() output
"""

import pytest
from pydantic import ValidationError

from autoflow.core.context import Context, Contact, Opportunity, unique_tags


# ============================================================================
# MODEL TESTS
# ============================================================================

@pytest.mark.unit
def test_context_defaults():
    """Test an empty Context is fully populated"""
    ctx = Context()

    assert ctx.trigger_type == "unknown"
    assert ctx.contact.email == ""
    assert ctx.contact.tags == []
    assert ctx.opportunity.value == 0
    assert ctx.meta == {}


@pytest.mark.unit
def test_unique_tags_keeps_first_occurrence():
    """Test unique_tags preserves order"""
    assert unique_tags(["a", "b", "a", "c", "b"]) == ["a", "b", "c"]


@pytest.mark.unit
def test_contact_tags_deduplicated():
    """Test Contact drops duplicate tags"""
    assert Contact(tags=["vip", "vip", "lead"]).tags == ["vip", "lead"]


@pytest.mark.unit
def test_contact_is_frozen():
    """Test Contact cannot be changed in place"""
    contact = Contact(email="a@b.com")
    with pytest.raises(ValidationError):
        contact.email = "c@d.com"


@pytest.mark.unit
def test_contact_get_free_form_field():
    """Test Contact.get reads declared and extra fields"""
    contact = Contact(email="a@b.com", assigned_salesperson="bob")

    assert contact.get("email") == "a@b.com"
    assert contact.get("assigned_salesperson") == "bob"
    assert contact.get("missing", "fallback") == "fallback"


# ============================================================================
# EVOLVE TESTS
# ============================================================================

@pytest.mark.unit
def test_evolve_returns_new_context(sample_context):
    """Test evolve applies updates to a copy"""
    updated = sample_context.evolve(contact={"status": "customer"})

    assert updated is not sample_context
    assert updated.contact.status == "customer"
    assert sample_context.contact.status == "subscribed"


@pytest.mark.unit
def test_evolve_without_changes_is_equal_copy(sample_context):
    """Test evolve() with no updates gives an equal, distinct Context"""
    copy = sample_context.evolve()

    assert copy == sample_context
    assert copy is not sample_context
    assert copy.contact.tags is not sample_context.contact.tags


@pytest.mark.unit
def test_evolve_tags_do_not_alias(sample_context):
    """Test tag lists are independent between snapshots"""
    new_tags = ["prospect", "vip"]
    updated = sample_context.evolve(contact={"tags": new_tags})
    new_tags.append("leaked")

    assert updated.contact.tags == ["prospect", "vip"]
    assert sample_context.contact.tags == ["prospect"]


@pytest.mark.unit
def test_evolve_dedupes_tags(sample_context):
    """Test evolve keeps tags a set"""
    updated = sample_context.evolve(contact={"tags": ["prospect", "vip", "vip"]})
    assert updated.contact.tags == ["prospect", "vip"]


@pytest.mark.unit
def test_evolve_free_form_contact_field(sample_context):
    """Test evolve can add fields the Contact does not declare"""
    updated = sample_context.evolve(contact={"campaign_id": "spring"})

    assert updated.contact.get("campaign_id") == "spring"
    assert sample_context.contact.get("campaign_id") is None


@pytest.mark.unit
def test_evolve_merges_meta():
    """Test meta updates merge into existing keys"""
    ctx = Context(meta={"email_opened": True})
    updated = ctx.evolve(meta={"last_note": "hello"})

    assert updated.meta == {"email_opened": True, "last_note": "hello"}
    assert ctx.meta == {"email_opened": True}


@pytest.mark.unit
def test_evolve_opportunity_partial_update(sample_context):
    """Test opportunity updates leave other fields alone"""
    updated = sample_context.evolve(opportunity={"stage": "won"})

    assert updated.opportunity.stage == "won"
    assert updated.opportunity.value == 2500


# ============================================================================
# SNAPSHOT TESTS
# ============================================================================

@pytest.mark.unit
def test_snapshot_is_plain_json(sample_context):
    """Test snapshot returns JSON-ready dicts"""
    snap = sample_context.evolve(contact={"assigned_salesperson": "bob"}).snapshot()

    assert snap["contact"]["email"] == "jane@acme.com"
    assert snap["contact"]["assigned_salesperson"] == "bob"
    assert snap["opportunity"] == {
        "id": "", "stage": "qualification", "value": 2500.0, "status": "", "pipeline": ""
    }
    assert isinstance(snap["meta"], dict)


@pytest.mark.unit
def test_opportunity_value_coerced():
    """Test Opportunity.value is numeric"""
    assert Opportunity(value="12.5").value == 12.5
