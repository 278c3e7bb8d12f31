"""
Celery Tasks for AUTOFLOW

- run_automation_task: run one workflow definition for one contact event

Runs are independent: each task builds its own engine Context, so any number
of contacts can be processed in parallel by the worker pool.
"""

import logging
from typing import Any, Dict, Optional

from .celery_app import celery_app
from ..config import get_settings
from ..core.engine import WorkflowEngine
from ..core.logging_config import set_request_id, clear_request_id

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, name="run_automation_task", max_retries=0)
def run_automation_task(
    self,
    definition: Dict[str, Any],
    raw_payload: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Run an automation for one contact event.

    Args:
        definition: {"trigger": {...}, "nodes": [...], "edges": [...]}
        raw_payload: Event payload for the contact

    Returns:
        WorkflowResult as a JSON-ready dict. A failed run is a normal return
        value (success=False), not a task failure, so it is never retried.
    """
    task_id = self.request.id
    set_request_id(task_id or "local")

    try:
        logger.info(f"Task {task_id}: Running automation")
        engine = WorkflowEngine.from_settings(get_settings())
        result = engine.run_definition(definition, raw_payload or {})

        if result.success:
            logger.info(f"Task {task_id}: Completed ({len(result.steps)} steps)")
        else:
            logger.warning(
                f"Task {task_id}: Failed at node {result.error.failing_node_id}: {result.error.message}"
            )

        return result.to_dict()
    finally:
        clear_request_id()
