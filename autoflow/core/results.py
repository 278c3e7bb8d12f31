"""
Run Results

Write-once records produced by one engine run: a Step per executed node and
the WorkflowResult that wraps them.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from .context import Context
from .validation import ValidationIssue

StepStatus = Literal["pending", "success", "error"]
Branch = Literal["YES", "NO"]


class Step(BaseModel):
    """Outcome of executing one node."""

    node_id: Optional[str] = None
    node_type: str
    index: int = Field(..., ge=1, description="1-based position in the node list")
    status: StepStatus = "pending"
    output: Any = None
    error: Optional[str] = None
    branch_taken: Optional[Branch] = None
    payload_after: Optional[Context] = Field(
        None, description="Context carried forward after this step"
    )

    class Config:
        frozen = True


class RunError(BaseModel):
    """Why a run failed."""

    failing_node_id: Optional[str] = None
    message: str
    issues: Optional[List[ValidationIssue]] = None

    class Config:
        frozen = True


class WorkflowResult(BaseModel):
    """Full output of one run."""

    success: bool = False
    trigger_type: Optional[str] = None
    started_at: str
    completed_at: Optional[str] = None
    steps: List[Step] = Field(default_factory=list)
    final_payload: Optional[Context] = None
    error: Optional[RunError] = None

    class Config:
        frozen = True

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready dict (for API responses and task results)."""
        return self.model_dump(mode="json")
