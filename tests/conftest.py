"""
Pytest fixtures for AUTOFLOW tests

This module provides shared fixtures for all tests:
- Fixed clock and engine
- Sample contact payloads
- Sample workflow definitions (welcome, tagging, branching)
"""

import os

# Celery app refuses to configure without a broker URL; tests never connect to it
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")

import pytest
from datetime import datetime, timezone
from typing import Dict, Any

from autoflow.core.context import Context, Contact, Opportunity
from autoflow.core.engine import WorkflowEngine
from autoflow.core.handlers import HandlerRuntime


FIXED_NOW = datetime(2026, 3, 5, 9, 30, tzinfo=timezone.utc)


# ============================================================================
# CLOCK / ENGINE FIXTURES
# ============================================================================

@pytest.fixture
def fixed_now():
    """The instant every fixed-clock run happens at."""
    return FIXED_NOW


@pytest.fixture
def fixed_clock(fixed_now):
    """Clock that always returns the same instant."""
    return lambda: fixed_now


@pytest.fixture
def engine(fixed_clock):
    """Engine with a fixed clock (results are deterministic)."""
    return WorkflowEngine(clock=fixed_clock)


@pytest.fixture
def runtime(fixed_now):
    """Handler runtime for calling handlers directly."""
    return HandlerRuntime(now=fixed_now)


# ============================================================================
# PAYLOAD FIXTURES
# ============================================================================

@pytest.fixture
def sample_payload() -> Dict[str, Any]:
    """Raw payload for a typical lead."""
    return {
        "id": "c_100",
        "email": "jane@acme.com",
        "first_name": "Jane",
        "last_name": "Smith",
        "company": "Acme",
        "phone": "+15550100",
        "tags": ["prospect"],
        "status": "subscribed",
        "contact_type": "lead",
        "opportunity_stage": "qualification",
        "opportunity_value": 2500,
    }


@pytest.fixture
def sample_context() -> Context:
    """Normalized Context for a typical lead."""
    return Context(
        trigger_type="form_submission",
        triggered_at=FIXED_NOW.isoformat(),
        contact=Contact(
            id="c_100",
            email="jane@acme.com",
            first_name="Jane",
            last_name="Smith",
            company="Acme",
            tags=["prospect"],
            status="subscribed",
        ),
        opportunity=Opportunity(stage="qualification", value=2500),
    )


# ============================================================================
# WORKFLOW FIXTURES
# ============================================================================

@pytest.fixture
def welcome_workflow() -> Dict[str, Any]:
    """form_submission -> wait -> send_email"""
    return {
        "trigger": {"type": "form_submission"},
        "nodes": [
            {"id": "n1", "type": "wait", "config": {"wait_days": 1, "wait_unit": "minutes"}},
            {"id": "n2", "type": "send_email", "config": {
                "subject": "Welcome {{first_name}}",
                "body": "Hi {{first_name}}, thanks for contacting {{company}}",
            }},
        ],
        "edges": [{"id": "e1", "source": "n1", "target": "n2"}],
    }


@pytest.fixture
def tagging_workflow() -> Dict[str, Any]:
    """tag_added -> add_tag vip -> remove_tag prospect -> change_status"""
    return {
        "trigger": {"type": "tag_added", "condition": {"tag": "new"}},
        "nodes": [
            {"id": "n1", "type": "add_tag", "config": {"tag": "vip"}},
            {"id": "n2", "type": "remove_tag", "config": {"tag": "prospect"}},
            {"id": "n3", "type": "change_status", "config": {"new_status": "customer"}},
        ],
        "edges": [],
    }


@pytest.fixture
def branching_workflow() -> Dict[str, Any]:
    """condition has_tag vip -> add_note (edges declare YES/NO branches)"""
    return {
        "trigger": {"type": "manual"},
        "nodes": [
            {"id": "c1", "type": "condition", "config": {"condition_type": "has_tag", "tag": "vip"}},
            {"id": "n2", "type": "add_note", "config": {"note": "Checked VIP status"}},
        ],
        "edges": [
            {"id": "e1", "source": "c1", "target": "n2", "label": "YES"},
            {"id": "e2", "source": "c1", "target": "n2", "label": "NO"},
        ],
    }
