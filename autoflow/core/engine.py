"""
Workflow Engine for AUTOFLOW

The WorkflowEngine runs one automation for one contact event:
1. Validates the workflow definition (fails fast, no node runs)
2. Normalizes the raw trigger payload into a Context
3. Executes nodes in list order through the handler registry
4. Records a Step per node and returns a WorkflowResult

This is a straight-line preview executor: nodes run in the order of the
node list, condition nodes record their YES/NO branch without changing
which node runs next, and edges are accepted but never walked. Wait nodes
describe the delay and return immediately.

Example:
    engine = WorkflowEngine()

    result = engine.run(
        trigger={"type": "form_submission"},
        nodes=[
            {"id": "n1", "type": "add_tag", "config": {"tag": "lead"}},
            {"id": "n2", "type": "send_email", "config": {"subject": "Hi {{first_name}}", "body": "..."}},
        ],
        raw_payload={"email": "jane@example.com", "first_name": "Jane"},
    )
    result.success           # True
    result.steps[1].output   # {"to": "jane@example.com", "subject": "Hi Jane", ...}

Every run builds its own Context and never writes shared state, so callers
may run many contacts in parallel with one engine instance.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from .context import Context
from .exceptions import AutoflowException, WorkflowValidationError
from .handlers import HandlerRuntime, get_handler
from .nodes import (
    Node,
    NodeLike,
    TriggerLike,
    WorkflowDefinition,
    coerce_nodes,
    coerce_trigger,
)
from .normalizer import normalize_trigger_payload
from .results import RunError, Step, WorkflowResult
from .validation import validate_node, validate_workflow

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class WorkflowEngine:
    """
    Straight-line executor for automation workflows.

    No retries happen anywhere: the first failing node ends the run and the
    failure is returned in WorkflowResult.error, never raised.
    """

    def __init__(self, clock: Optional[Clock] = None, unknown_condition_result: bool = True):
        """
        Initialize WorkflowEngine.

        Args:
            clock: Returns the current time (default: UTC now). Inject a fixed
                   clock to make results deterministic.
            unknown_condition_result: Branch result for condition nodes with an
                   unknown condition_type (True = YES)
        """
        self.clock = clock or utc_now
        self.unknown_condition_result = unknown_condition_result

    @classmethod
    def from_settings(cls, settings, clock: Optional[Clock] = None) -> "WorkflowEngine":
        """Build an engine configured from `autoflow.config.Settings`."""
        return cls(clock=clock, unknown_condition_result=settings.unknown_condition_result)

    def _execute_node(
        self,
        node: Node,
        index: int,
        context: Context,
        runtime: HandlerRuntime,
    ) -> Tuple[Step, Context]:
        """
        Execute one node.

        Returns:
            (step, context to carry forward). On failure the step has
            status "error" and the context is returned unchanged.
        """
        start_time = time.time()

        node_errors = validate_node(node)
        if node_errors:
            message = "; ".join(node_errors)
            logger.warning(
                f"Node {node.id} ({node.type}) failed validation: {message}",
                extra={"node_id": node.id, "node_type": node.type, "index": index}
            )
            return Step(
                node_id=node.id,
                node_type=node.type,
                index=index,
                status="error",
                error=message,
            ), context

        handler = get_handler(node.type)

        try:
            outcome = handler(node, context, runtime)
        except AutoflowException as e:
            logger.error(f"Node {node.id} ({node.type}) failed: {e.message}")
            return self._error_step(node, index, e.message), context
        except Exception as e:
            logger.exception(f"Unexpected error executing node {node.id} ({node.type})")
            return self._error_step(node, index, str(e)), context

        execution_time = time.time() - start_time
        logger.info(
            f"Node {node.id} ({node.type}) completed in {execution_time:.4f}s",
            extra={
                "node_id": node.id,
                "node_type": node.type,
                "index": index,
                "branch_taken": outcome.branch_taken,
            }
        )

        return Step(
            node_id=node.id,
            node_type=node.type,
            index=index,
            status="success",
            output=outcome.output,
            branch_taken=outcome.branch_taken,
            payload_after=outcome.context,
        ), outcome.context

    @staticmethod
    def _error_step(node: Node, index: int, message: str) -> Step:
        return Step(
            node_id=node.id,
            node_type=node.type,
            index=index,
            status="error",
            error=message or "Unknown error",
        )

    def run(
        self,
        trigger: TriggerLike,
        nodes: Optional[Iterable[NodeLike]],
        raw_payload: Optional[Dict[str, Any]] = None,
        edges: Optional[List[Any]] = None,
    ) -> WorkflowResult:
        """
        Run a workflow against one raw event.

        Args:
            trigger: Trigger (or dict)
            nodes: Nodes (or dicts), executed in list order
            raw_payload: Raw event payload, may be empty
            edges: Builder edges; recorded in the log only

        Returns:
            WorkflowResult. success=False with error set when the workflow is
            invalid (no steps) or a node fails (steps up to and including the
            failing one).
        """
        started_at = self.clock()
        nodes = list(nodes or [])

        try:
            trigger_type = coerce_trigger(trigger).type
        except WorkflowValidationError:
            trigger_type = None

        logger.info(
            f"Starting workflow run (trigger: {trigger_type}, {len(nodes)} nodes, "
            f"{len(edges or [])} edges not followed)"
        )

        # Validating
        issues = validate_workflow(trigger, nodes)
        if issues:
            logger.warning(
                f"Workflow invalid, no node executed: {issues[0].message}",
                extra={"issue_count": len(issues)}
            )
            return WorkflowResult(
                success=False,
                trigger_type=trigger_type,
                started_at=started_at.isoformat(),
                error=RunError(
                    failing_node_id=issues[0].node_id,
                    message=issues[0].message,
                    issues=issues,
                ),
            )

        # Normalizing
        trigger = coerce_trigger(trigger)
        parsed_nodes = coerce_nodes(nodes)
        context = normalize_trigger_payload(trigger, raw_payload, now=started_at)
        runtime = HandlerRuntime(
            now=started_at,
            unknown_condition_result=self.unknown_condition_result,
        )

        # Executing
        steps: List[Step] = []
        for index, node in enumerate(parsed_nodes, start=1):
            step, context = self._execute_node(node, index, context, runtime)
            steps.append(step)

            if step.status == "error":
                logger.error(f"Workflow run failed at node {node.id}: {step.error}")
                return WorkflowResult(
                    success=False,
                    trigger_type=trigger_type,
                    started_at=started_at.isoformat(),
                    steps=steps,
                    error=RunError(failing_node_id=node.id, message=step.error),
                )

        logger.info(f"Workflow run completed successfully ({len(steps)} nodes executed)")

        return WorkflowResult(
            success=True,
            trigger_type=trigger_type,
            started_at=started_at.isoformat(),
            completed_at=self.clock().isoformat(),
            steps=steps,
            final_payload=context,
        )

    def run_definition(
        self,
        definition: Union[WorkflowDefinition, Dict[str, Any]],
        raw_payload: Optional[Dict[str, Any]] = None,
    ) -> WorkflowResult:
        """
        Run a stored definition ({"trigger", "nodes", "edges"}).

        The definition is read as plain data so that malformed nodes come
        back as validation issues rather than exceptions.
        """
        if isinstance(definition, WorkflowDefinition):
            definition = definition.model_dump()
        definition = definition or {}
        return self.run(
            trigger=definition.get("trigger"),
            nodes=definition.get("nodes"),
            raw_payload=raw_payload,
            edges=definition.get("edges"),
        )


def run_workflow(
    trigger: TriggerLike,
    nodes: Optional[Iterable[NodeLike]],
    raw_payload: Optional[Dict[str, Any]] = None,
    clock: Optional[Clock] = None,
) -> WorkflowResult:
    """Run a workflow with a default-configured engine."""
    return WorkflowEngine(clock=clock).run(trigger, nodes, raw_payload)
