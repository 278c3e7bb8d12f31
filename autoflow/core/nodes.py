"""
Workflow Definition Models for AUTOFLOW

A workflow definition is produced by the automation builder and is an
immutable input to one run:
- Trigger: the event type that starts the workflow (exactly one)
- Node: one action or condition step, with a type-specific config object
- Edge: declared connection between two nodes (descriptive only)

All models are frozen Pydantic models. Node types are open strings: a type
the engine does not know validates clean and changes nothing when run.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, Any, List, Iterable, Union

from .exceptions import WorkflowValidationError


class Trigger(BaseModel):
    """
    Event that starts a workflow run.

    Examples:
        {"type": "form_submission"}
        {"type": "tag_added", "condition": {"tag": "vip"}}
    """

    type: Optional[str] = Field(None, description="Trigger type (e.g. 'tag_added')")
    condition: Dict[str, Any] = Field(default_factory=dict, description="Trigger filter settings")

    class Config:
        frozen = True
        extra = "allow"

    @field_validator("condition", mode="before")
    @classmethod
    def default_condition(cls, v: Any) -> Any:
        return v if v is not None else {}


class Node(BaseModel):
    """
    One step of a workflow.

    `config` shape depends on `type`:
        {"id": "n1", "type": "add_tag", "config": {"tag": "prospect"}}
        {"id": "n2", "type": "wait", "config": {"wait_days": 2, "wait_unit": "days"}}
        {"id": "n3", "type": "condition", "config": {"condition_type": "has_tag", "tag": "vip"}}
    """

    id: Optional[str] = Field(None, description="Node identifier, unique within the workflow")
    type: str = Field(..., min_length=1, description="Node type (e.g. 'send_email')")
    label: Optional[str] = Field(None, description="Human-readable label")
    config: Dict[str, Any] = Field(default_factory=dict, description="Type-specific configuration")

    class Config:
        frozen = True
        extra = "allow"  # builder stores canvas position etc.

    @field_validator("id", mode="before")
    @classmethod
    def id_as_string(cls, v: Any) -> Any:
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator("config", mode="before")
    @classmethod
    def default_config(cls, v: Any) -> Any:
        return v if v is not None else {}

    @property
    def display_type(self) -> str:
        """Node type with underscores turned into spaces ('send_sms' -> 'send sms')."""
        return self.type.replace("_", " ")


class Edge(BaseModel):
    """
    Connection between two nodes.

    Edges are kept with the definition for the builder canvas; the
    straight-line executor does not follow them.
    """

    id: Optional[str] = None
    source: str = Field(..., min_length=1)
    target: str = Field(..., min_length=1)
    label: Optional[str] = Field(None, description="Branch label, e.g. 'YES' / 'NO'")

    class Config:
        frozen = True
        extra = "allow"


class WorkflowDefinition(BaseModel):
    """Trigger + nodes + edges, as persisted by the builder."""

    trigger: Trigger = Field(default_factory=Trigger)
    nodes: List[Node] = Field(default_factory=list)
    edges: List[Edge] = Field(default_factory=list)

    class Config:
        frozen = True

    @field_validator("trigger", mode="before")
    @classmethod
    def default_trigger(cls, v: Any) -> Any:
        return v if v is not None else {}


NodeLike = Union[Node, Dict[str, Any]]
TriggerLike = Union[Trigger, Dict[str, Any], None]


def create_node_from_dict(node_data: NodeLike) -> Node:
    """
    Factory function: builds a Node from a dictionary (or returns a Node as is).

    Args:
        node_data: Dictionary with node fields (must include 'type')

    Returns:
        Node instance

    Raises:
        WorkflowValidationError: If the data cannot form a node

    Example:
        >>> node = create_node_from_dict({"id": "n1", "type": "add_tag", "config": {"tag": "vip"}})
        >>> node.config["tag"]
        'vip'
    """
    if isinstance(node_data, Node):
        return node_data

    if not isinstance(node_data, dict):
        raise WorkflowValidationError(
            f"Node must be an object, got {type(node_data).__name__}"
        )

    try:
        return Node(**node_data)
    except Exception as e:
        raise WorkflowValidationError(
            f"Failed to parse node {node_data.get('id')}: {e}",
            node_id=node_data.get("id"),
        )


def coerce_trigger(trigger: TriggerLike) -> Trigger:
    """Accept a Trigger, a dict or None."""
    if isinstance(trigger, Trigger):
        return trigger
    if trigger is None:
        return Trigger()
    if not isinstance(trigger, dict):
        raise WorkflowValidationError(
            f"Trigger must be an object, got {type(trigger).__name__}"
        )
    try:
        return Trigger(**trigger)
    except Exception as e:
        raise WorkflowValidationError(f"Failed to parse trigger: {e}")


def coerce_nodes(nodes: Optional[Iterable[NodeLike]]) -> List[Node]:
    """Parse every node; raises on the first one that cannot be parsed."""
    return [create_node_from_dict(n) for n in (nodes or [])]
