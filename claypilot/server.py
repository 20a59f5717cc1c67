"""
HTTP and WebSocket front end for a :class:`WorkflowManager`.

REST routes report state and start work in the background; every event the
manager's log emits is pushed to connected WebSocket clients as
``{"type", "data", "timestamp"}``. Only one workflow or pipeline runs at a
time.
"""

from __future__ import annotations

import asyncio
import datetime
import json
import logging
from typing import Any, Awaitable, Callable

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field, ValidationError

from claypilot.config import ServerSettings
from claypilot.core.events import Event
from claypilot.workflows.manager import WORKFLOWS, WorkflowManager, WorkflowStatus
from claypilot.workflows.types import PipelineConfig

logger = logging.getLogger(__name__)


def envelope(message_type: str, data: Any) -> dict[str, Any]:
    return {
        "type": message_type,
        "data": jsonable_encoder(data),
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
    }


class ConnectionManager:
    """Fan-out of broadcast messages to every open WebSocket."""

    def __init__(self) -> None:
        self._queues: dict[int, tuple[asyncio.AbstractEventLoop, asyncio.Queue]] = {}

    async def connect(self, websocket: WebSocket) -> asyncio.Queue:
        await websocket.accept()
        queue: asyncio.Queue = asyncio.Queue()
        self._queues[id(websocket)] = (asyncio.get_running_loop(), queue)
        return queue

    def disconnect(self, websocket: WebSocket) -> None:
        self._queues.pop(id(websocket), None)

    @property
    def count(self) -> int:
        return len(self._queues)

    def broadcast(self, message: dict[str, Any]) -> None:
        # Safe to call from any thread; delivery happens on each socket's loop
        for loop, queue in list(self._queues.values()):
            loop.call_soon_threadsafe(queue.put_nowait, message)


class WorkflowRunner:
    """Runs at most one workflow or pipeline at a time, in the background."""

    def __init__(self, manager: WorkflowManager, connections: ConnectionManager) -> None:
        self.manager = manager
        self.connections = connections
        self._task: asyncio.Task | None = None

    @property
    def busy(self) -> bool:
        if self._task is not None and not self._task.done():
            return True
        return self.manager.get_state().status is WorkflowStatus.RUNNING

    def start(self, work: Callable[[], Awaitable[Any]]) -> None:
        self._task = asyncio.create_task(self._run(work))

    async def join(self) -> None:
        if self._task is not None:
            await self._task

    async def _run(self, work: Callable[[], Awaitable[Any]]) -> None:
        try:
            result = await work()
        except Exception as exc:
            logger.exception("Background workflow crashed")
            self.connections.broadcast(envelope("error", str(exc)))
            return
        self.connections.broadcast(envelope("result", result))


class StartRequest(BaseModel):
    workflow: str
    input: dict[str, Any] | None = Field(default=None)


class APIResponse(BaseModel):
    success: bool
    message: str | None = None
    error: str | None = None


def status_payload(manager: WorkflowManager) -> dict[str, Any]:
    state = manager.get_state()
    return {
        "status": state.status.value,
        "currentWorkflow": state.current_workflow,
        "currentStep": state.current_step,
        "progress": state.progress,
        "startTime": state.started_at.isoformat() if state.started_at else None,
        "logsCount": len(manager.events.entries()),
    }


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def get_manager(request: Request) -> WorkflowManager:
    return request.app.state.manager


def get_runner(request: Request) -> WorkflowRunner:
    return request.app.state.runner


def _refuse(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


# ---------------------------------------------------------------------------
# REST routes
# ---------------------------------------------------------------------------

router = APIRouter(prefix="/api", tags=["workflows"])


@router.get("/status")
async def get_status(manager: WorkflowManager = Depends(get_manager)) -> dict[str, Any]:
    return status_payload(manager)


@router.get("/workflows")
async def list_workflows() -> list[dict[str, str]]:
    return [
        {"id": key, "name": workflow.name, "description": workflow.description}
        for key, workflow in WORKFLOWS.items()
    ]


@router.get("/logs")
async def get_logs(
    count: int = Query(50, ge=0),
    manager: WorkflowManager = Depends(get_manager),
) -> list[dict[str, Any]]:
    return jsonable_encoder(manager.events.recent(count))


@router.post("/start", response_model=APIResponse)
async def start_workflow(
    body: StartRequest,
    manager: WorkflowManager = Depends(get_manager),
    runner: WorkflowRunner = Depends(get_runner),
) -> APIResponse:
    if body.workflow not in WORKFLOWS:
        raise _refuse(f"Unknown workflow: {body.workflow}")
    if runner.busy:
        raise _refuse("A workflow is already running")

    runner.start(lambda: manager.execute(body.workflow, body.input))
    return APIResponse(success=True, message="Workflow started")


@router.post("/pipeline", response_model=APIResponse)
async def start_pipeline(
    body: dict[str, Any],
    manager: WorkflowManager = Depends(get_manager),
    runner: WorkflowRunner = Depends(get_runner),
) -> APIResponse:
    try:
        config = PipelineConfig.model_validate(body)
    except ValidationError:
        raise _refuse("Missing or invalid fields: tableName, csvPath, enrichmentType") from None
    if runner.busy:
        raise _refuse("A workflow is already running")

    runner.start(lambda: manager.run_full_pipeline(config))
    return APIResponse(success=True, message="Pipeline started")


@router.post("/pause", response_model=APIResponse)
async def pause(
    manager: WorkflowManager = Depends(get_manager),
    runner: WorkflowRunner = Depends(get_runner),
) -> APIResponse:
    manager.pause()
    runner.connections.broadcast(envelope("status", "paused"))
    return APIResponse(success=True)


@router.post("/resume", response_model=APIResponse)
async def resume(
    manager: WorkflowManager = Depends(get_manager),
    runner: WorkflowRunner = Depends(get_runner),
) -> APIResponse:
    manager.resume()
    runner.connections.broadcast(envelope("status", "resumed"))
    return APIResponse(success=True)


# ---------------------------------------------------------------------------
# WebSocket
# ---------------------------------------------------------------------------


async def _pump(websocket: WebSocket, queue: asyncio.Queue) -> None:
    while True:
        await websocket.send_json(await queue.get())


async def progress_socket(websocket: WebSocket) -> None:
    """Push every broadcast to the client; answer ``{"type": "ping"}`` with a pong."""
    manager: WorkflowManager = websocket.app.state.manager
    connections: ConnectionManager = websocket.app.state.connections

    queue = await connections.connect(websocket)
    logger.info("Client connected (%d open)", connections.count)
    pump: asyncio.Task | None = None
    try:
        await websocket.send_json(envelope("init", status_payload(manager)))
        pump = asyncio.create_task(_pump(websocket, queue))
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                logger.warning("Invalid WebSocket message: %r", raw)
                continue
            if isinstance(message, dict) and message.get("type") == "ping":
                queue.put_nowait(envelope("pong", None))
    except WebSocketDisconnect:
        logger.info("Client disconnected")
    finally:
        if pump is not None:
            pump.cancel()
        connections.disconnect(websocket)


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


def create_app(manager: WorkflowManager) -> FastAPI:
    """Build the app around ``manager`` and bridge its events to the sockets."""
    app = FastAPI(title="claypilot", description="Live progress for Clay workflows")
    connections = ConnectionManager()

    app.state.manager = manager
    app.state.connections = connections
    app.state.runner = WorkflowRunner(manager, connections)

    def forward(event: Event) -> None:
        connections.broadcast(envelope(event.type, event.data))

    manager.events.subscribe(forward)

    app.include_router(router)
    app.add_api_websocket_route("/ws", progress_socket)
    return app


async def serve(manager: WorkflowManager, settings: ServerSettings, log_level: str = "info") -> None:
    """Run the app on uvicorn inside the current event loop."""
    config = uvicorn.Config(
        create_app(manager),
        host=settings.host,
        port=settings.port,
        log_level=log_level.lower(),
    )
    logger.info("Serving on http://%s:%d (WebSocket at /ws)", settings.host, settings.port)
    await uvicorn.Server(config).serve()
