"""
Tests for Workflow Definition Models

Tests cover:
- Trigger, Node and Edge creation
- Pydantic field validation
- Immutability (frozen models)
- Factory function (create_node_from_dict)
- Trigger/node coercion helpers
"""

import pytest
from pydantic import ValidationError

from autoflow.core.exceptions import WorkflowValidationError
from autoflow.core.nodes import (
    Trigger,
    Node,
    Edge,
    WorkflowDefinition,
    create_node_from_dict,
    coerce_trigger,
    coerce_nodes,
)


# =============================================================================
# Trigger Tests
# =============================================================================


@pytest.mark.unit
def test_trigger_creation():
    """Test creating a Trigger with a condition"""
    trigger = Trigger(type="tag_added", condition={"tag": "vip"})
    assert trigger.type == "tag_added"
    assert trigger.condition == {"tag": "vip"}


@pytest.mark.unit
def test_trigger_defaults():
    """Test that an empty Trigger has no type and an empty condition"""
    trigger = Trigger()
    assert trigger.type is None
    assert trigger.condition == {}


@pytest.mark.unit
def test_trigger_none_condition():
    """Test that a null condition becomes {}"""
    assert Trigger(type="manual", condition=None).condition == {}


# =============================================================================
# Node Tests
# =============================================================================


@pytest.mark.unit
def test_node_creation():
    """Test creating a basic Node"""
    node = Node(id="n1", type="add_tag", config={"tag": "vip"})
    assert node.id == "n1"
    assert node.type == "add_tag"
    assert node.config["tag"] == "vip"
    assert node.label is None


@pytest.mark.unit
def test_node_immutable():
    """Test that Node is immutable (frozen)"""
    node = Node(id="n1", type="add_tag")
    with pytest.raises(ValidationError):
        node.type = "remove_tag"


@pytest.mark.unit
def test_node_empty_type():
    """Test that an empty type raises validation error"""
    with pytest.raises(ValidationError, match="String should have at least 1 character"):
        Node(id="n1", type="")


@pytest.mark.unit
def test_node_numeric_id_becomes_string():
    """Test that builder-generated numeric ids are read as strings"""
    assert Node(id=7, type="wait").id == "7"


@pytest.mark.unit
def test_node_none_config():
    """Test that a null config becomes {}"""
    assert Node(id="n1", type="wait", config=None).config == {}


@pytest.mark.unit
def test_node_extra_fields_allowed():
    """Test that canvas fields stored by the builder are accepted"""
    node = Node(id="n1", type="wait", position={"x": 10, "y": 20})
    assert node.model_extra["position"] == {"x": 10, "y": 20}


@pytest.mark.unit
def test_node_display_type():
    """Test display_type replaces underscores with spaces"""
    assert Node(type="send_review_request").display_type == "send review request"


# =============================================================================
# Edge / Definition Tests
# =============================================================================


@pytest.mark.unit
def test_edge_creation():
    """Test creating an Edge with a branch label"""
    edge = Edge(id="e1", source="c1", target="n2", label="YES")
    assert (edge.source, edge.target, edge.label) == ("c1", "n2", "YES")


@pytest.mark.unit
def test_edge_requires_endpoints():
    """Test that an Edge needs source and target"""
    with pytest.raises(ValidationError):
        Edge(id="e1", source="n1")


@pytest.mark.unit
def test_workflow_definition_parses_nested(welcome_workflow):
    """Test WorkflowDefinition builds typed trigger, nodes and edges"""
    definition = WorkflowDefinition(**welcome_workflow)
    assert definition.trigger.type == "form_submission"
    assert [n.id for n in definition.nodes] == ["n1", "n2"]
    assert definition.edges[0].target == "n2"


@pytest.mark.unit
def test_workflow_definition_null_trigger():
    """Test that a null trigger becomes an unset Trigger"""
    definition = WorkflowDefinition(trigger=None, nodes=[])
    assert definition.trigger.type is None


# =============================================================================
# Factory / Coercion Tests
# =============================================================================


@pytest.mark.unit
def test_create_node_from_dict():
    """Test factory builds a Node from a dict"""
    node = create_node_from_dict({"id": "n1", "type": "send_sms", "config": {"body": "Hi"}})
    assert isinstance(node, Node)
    assert node.config == {"body": "Hi"}


@pytest.mark.unit
def test_create_node_from_dict_passthrough():
    """Test factory returns an existing Node unchanged"""
    node = Node(id="n1", type="wait")
    assert create_node_from_dict(node) is node


@pytest.mark.unit
def test_create_node_from_dict_missing_type():
    """Test factory raises WorkflowValidationError carrying the node id"""
    with pytest.raises(WorkflowValidationError) as exc_info:
        create_node_from_dict({"id": "n9", "config": {}})
    assert exc_info.value.node_id == "n9"
    assert "Failed to parse node n9" in exc_info.value.message


@pytest.mark.unit
def test_create_node_from_dict_not_a_dict():
    """Test factory rejects non-object nodes"""
    with pytest.raises(WorkflowValidationError, match="Node must be an object, got str"):
        create_node_from_dict("send_email")


@pytest.mark.unit
def test_coerce_trigger_variants():
    """Test coerce_trigger accepts Trigger, dict and None"""
    trigger = Trigger(type="manual")
    assert coerce_trigger(trigger) is trigger
    assert coerce_trigger({"type": "manual"}).type == "manual"
    assert coerce_trigger(None).type is None


@pytest.mark.unit
def test_coerce_trigger_invalid():
    """Test coerce_trigger rejects a non-object trigger"""
    with pytest.raises(WorkflowValidationError, match="Trigger must be an object"):
        coerce_trigger(["manual"])


@pytest.mark.unit
def test_coerce_nodes():
    """Test coerce_nodes parses every node and accepts None"""
    nodes = coerce_nodes([{"id": "a", "type": "wait"}, Node(id="b", type="add_tag")])
    assert [n.id for n in nodes] == ["a", "b"]
    assert coerce_nodes(None) == []
