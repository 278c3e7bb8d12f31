"""
Pydantic schemas for API request/response validation
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any, List

from ..core.validation import ValidationIssue


# ============================================================================
# WORKFLOW SCHEMAS
# ============================================================================

class WorkflowPayload(BaseModel):
    """
    Workflow definition as sent by the builder.

    Nodes and edges are kept as plain objects so that incomplete nodes come
    back as validation issues instead of request errors.
    """
    trigger: Dict[str, Any] = Field(default_factory=dict, description="Trigger ({type, condition})")
    nodes: List[Dict[str, Any]] = Field(default_factory=list, description="Nodes in execution order")
    edges: List[Dict[str, Any]] = Field(default_factory=list, description="Builder edges (not followed)")

    class Config:
        json_schema_extra = {
            "example": {
                "trigger": {"type": "form_submission"},
                "nodes": [
                    {"id": "n1", "type": "wait", "config": {"wait_days": 1, "wait_unit": "minutes"}},
                    {"id": "n2", "type": "send_email", "config": {
                        "subject": "Welcome {{first_name}}",
                        "body": "Hi {{first_name}}, thanks for signing up!"
                    }}
                ],
                "edges": [{"id": "e1", "source": "n1", "target": "n2"}]
            }
        }


class ValidationResponse(BaseModel):
    """Schema for validation results"""
    valid: bool
    issues: List[ValidationIssue]
    edge_issues: List[ValidationIssue]
    unknown_types: List[str] = Field(
        default_factory=list,
        description="Trigger/node types not in the catalog (they run, but do nothing)"
    )


# ============================================================================
# EXECUTION SCHEMAS
# ============================================================================

class PreviewRunRequest(WorkflowPayload):
    """Schema for a preview run"""
    payload: Optional[Dict[str, Any]] = Field(
        None,
        description="Raw trigger payload (defaults to the demo contact)"
    )


class DispatchRequest(WorkflowPayload):
    """Schema for queueing runs, one per contact payload"""
    payloads: List[Dict[str, Any]] = Field(..., min_length=1, description="One raw payload per contact")


class DispatchResponse(BaseModel):
    """Schema for queued runs"""
    status: str = "queued"
    count: int
    task_ids: List[str]


class TaskStatusResponse(BaseModel):
    """Schema for task status polling"""
    task_id: str
    status: str
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class CatalogResponse(BaseModel):
    """Schema for the trigger/action catalog"""
    triggers: List[Dict[str, str]]
    actions: List[Dict[str, str]]
