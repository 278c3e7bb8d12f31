"""
FastAPI main application
REST API behind the automation builder: catalog, validation, preview runs
and queueing of production runs.
"""

from fastapi import FastAPI, HTTPException, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Any, Dict
import logging
import uuid

from ..config import get_settings
from ..core.catalog import (
    ACTION_CATALOG,
    DEMO_PAYLOAD,
    TRIGGER_CATALOG,
    catalog_as_list,
    is_known_action,
    is_known_trigger,
)
from ..core.engine import WorkflowEngine
from ..core.exceptions import ConfigurationError
from ..core.logging_config import setup_logging, set_request_id, clear_request_id
from ..core.results import WorkflowResult
from ..core.validation import validate_edges, validate_workflow
from .schemas import (
    CatalogResponse,
    DispatchRequest,
    DispatchResponse,
    PreviewRunRequest,
    TaskStatusResponse,
    ValidationResponse,
    WorkflowPayload,
)

# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================

settings = get_settings()

setup_logging(
    level=settings.log_level,
    json_logs=settings.json_logs,
    log_file=settings.log_file
)

logger = logging.getLogger(__name__)

# ============================================================================
# FASTAPI APP CONFIGURATION
# ============================================================================

app = FastAPI(
    title="AUTOFLOW API",
    description="""
# Marketing Automation Workflow Engine

Validates automation workflows and runs them against a contact event.

## Endpoints

1. **GET /catalog** - Trigger and action types offered by the builder
2. **POST /automations/validate** - Check a workflow before saving
3. **POST /automations/test-run** - Preview a run (nothing is sent)
4. **POST /automations/dispatch** - Queue one run per contact (Celery)
5. **GET /tasks/{task_id}** - Poll a queued run

Runs are straight-line previews: nodes execute in list order, condition
nodes record YES/NO, edges are not followed.
    """,
    version="1.0.0",
    openapi_tags=[
        {"name": "health", "description": "Health checks"},
        {"name": "automations", "description": "Validate and run automation workflows"},
        {"name": "tasks", "description": "Queued production runs"},
    ]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_engine() -> WorkflowEngine:
    """Dependency: engine configured from settings"""
    return WorkflowEngine.from_settings(get_settings())


# ============================================================================
# MIDDLEWARE - Request ID Tracking
# ============================================================================

@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """
    Add a request ID to every request.

    - Uses X-Request-ID from the client or generates a UUID
    - Sets it in the logging context
    - Echoes it in the X-Request-ID response header
    """
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    set_request_id(request_id)

    logger.info(
        f"{request.method} {request.url.path}",
        extra={
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else None,
        }
    )

    try:
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        logger.info(f"Response {response.status_code}", extra={"status_code": response.status_code})
        return response

    except Exception as e:
        logger.exception("Unhandled exception in request", extra={"error": str(e)})
        raise

    finally:
        clear_request_id()


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    """Uniform error body: {"error", "status_code"}"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.detail,
            "status_code": exc.status_code
        }
    )


# ============================================================================
# ROOT & HEALTH
# ============================================================================

@app.get("/", tags=["health"], summary="API root")
def root():
    """Root endpoint - Returns API info"""
    return {
        "name": "AUTOFLOW API",
        "version": "1.0.0",
        "docs": "/docs",
    }


@app.get("/health", tags=["health"], summary="Health check")
def health_check():
    """Liveness probe"""
    return {"status": "healthy"}


@app.get("/catalog", response_model=CatalogResponse, tags=["automations"], summary="Trigger and action catalog")
def get_catalog():
    return {
        "triggers": catalog_as_list(TRIGGER_CATALOG),
        "actions": catalog_as_list(ACTION_CATALOG),
    }


# ============================================================================
# AUTOMATIONS
# ============================================================================

@app.post(
    "/automations/validate",
    response_model=ValidationResponse,
    tags=["automations"],
    summary="Validate workflow",
)
def validate_automation(workflow: WorkflowPayload):
    """
    Validate a workflow without running it.

    `valid` reflects `issues` only; edge issues and unknown types are
    informational, since the executor neither walks edges nor rejects
    unknown node types.
    """
    issues = validate_workflow(workflow.trigger, workflow.nodes)
    edge_issues = validate_edges(workflow.nodes, workflow.edges)

    unknown_types = []
    trigger_type = workflow.trigger.get("type")
    if trigger_type and not is_known_trigger(trigger_type):
        unknown_types.append(trigger_type)
    for node in workflow.nodes:
        node_type = node.get("type")
        if isinstance(node_type, str) and node_type and not is_known_action(node_type):
            unknown_types.append(node_type)

    return {
        "valid": not issues,
        "issues": issues,
        "edge_issues": edge_issues,
        "unknown_types": sorted(set(unknown_types)),
    }


@app.post(
    "/automations/test-run",
    response_model=WorkflowResult,
    tags=["automations"],
    summary="Preview run",
)
def test_run_automation(request: PreviewRunRequest, engine: WorkflowEngine = Depends(get_engine)):
    """
    Run the workflow once and return the full step trace.

    Nothing is sent: email/SMS/webhook nodes only describe what they would do.
    An invalid workflow is a normal response with success=false.
    """
    raw_payload = request.payload if request.payload is not None else DEMO_PAYLOAD
    result = engine.run(request.trigger, request.nodes, raw_payload, edges=request.edges)
    return result


def enqueue_automation(definition: Dict[str, Any], raw_payload: Dict[str, Any]) -> str:
    """Queue one run; returns the Celery task id."""
    from ..workers.tasks import run_automation_task

    return run_automation_task.delay(definition=definition, raw_payload=raw_payload).id


def fetch_task_status(task_id: str) -> Dict[str, Any]:
    """Look up a queued run in the Celery result backend."""
    from celery.result import AsyncResult
    from ..workers.celery_app import celery_app

    task = AsyncResult(task_id, app=celery_app)
    status: Dict[str, Any] = {"task_id": task_id, "status": task.state}
    if task.state == "SUCCESS":
        status["result"] = task.result
    elif task.state == "FAILURE":
        status["error"] = str(task.result)
    return status


@app.post(
    "/automations/dispatch",
    response_model=DispatchResponse,
    status_code=202,
    tags=["tasks"],
    summary="Queue runs (async)",
)
def dispatch_automation(request: DispatchRequest):
    """
    Queue one run per contact payload.

    The workflow is validated first; an invalid workflow is rejected with
    400 and nothing is queued.
    """
    issues = validate_workflow(request.trigger, request.nodes)
    if issues:
        raise HTTPException(status_code=400, detail=issues[0].message)

    definition = {"trigger": request.trigger, "nodes": request.nodes, "edges": request.edges}

    try:
        task_ids = [enqueue_automation(definition, payload) for payload in request.payloads]
    except ConfigurationError as e:
        logger.error(f"Cannot queue automation runs: {e.message}")
        raise HTTPException(status_code=503, detail=e.message)

    logger.info(f"Queued {len(task_ids)} automation run(s)")
    return {"status": "queued", "count": len(task_ids), "task_ids": task_ids}


@app.get(
    "/tasks/{task_id}",
    response_model=TaskStatusResponse,
    tags=["tasks"],
    summary="Task status",
)
def get_task_status(task_id: str):
    """Poll a queued run: PENDING, STARTED, SUCCESS (result) or FAILURE (error)."""
    try:
        return fetch_task_status(task_id)
    except ConfigurationError as e:
        raise HTTPException(status_code=503, detail=e.message)
