from __future__ import annotations
import asyncio, json, logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from proxhub import __version__
from proxhub.broadcast import Subscriber
from proxhub.config import MonitorConfig
from proxhub.events import BroadcastMessage, SubscriberCommand, Topic
from proxhub.schemas import DeviceBatchIn, NotificationIn, SetPriorityIn
from proxhub.service import MonitorService

logger = logging.getLogger("proxhub.api")

ENDPOINTS = {
    "devices": "POST /devices - scanner device batches",
    "getDevices": "GET /devices - current device snapshot",
    "priorityDevices": "GET /priority-devices - priority address list",
    "setPriority": "POST /set-priority - toggle a device's priority flag",
    "notifications": "POST /notifications - notifier events",
    "getNotifications": "GET /notifications?limit=N - recent events",
    "clearNotifications": "DELETE /notifications - clear the event log",
    "systemStats": "GET /system-stats - aggregate statistics",
    "status": "GET /status - service status",
    "health": "GET /health - liveness and diagnostics",
    "viewers": "WS /ws - real-time channel",
}


def _log_loop_exception(loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
    exc = context.get("exception")
    logger.error("Unhandled fault in event loop: %s", context.get("message"), exc_info=exc)


def _service(request: Request) -> MonitorService:
    return request.app.state.service


def create_app(service: Optional[MonitorService] = None) -> FastAPI:
    """Build the HTTP/WebSocket boundary around one service context."""
    monitor = service or MonitorService(MonitorConfig.from_env())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        asyncio.get_running_loop().set_exception_handler(_log_loop_exception)
        monitor.start()
        try:
            yield
        finally:
            await monitor.shutdown()

    app = FastAPI(title="proxhub API", version=__version__, lifespan=lifespan)
    app.state.service = monitor
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(monitor.config.cors_origins),
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        detail = [
            {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
            for err in exc.errors()
        ]
        logger.info("Rejected %s %s: %s", request.method, request.url.path, detail)
        return JSONResponse(status_code=400, content={"error": "Invalid request", "detail": detail})

    @app.exception_handler(Exception)
    async def internal_error(request: Request, exc: Exception):
        logger.exception("Error handling %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.get("/")
    async def index():
        return {
            "message": "proxhub - BLE proximity monitoring backend",
            "version": __version__,
            "endpoints": ENDPOINTS,
        }

    @app.post("/devices")
    async def submit_devices(body: DeviceBatchIn, request: Request):
        return _service(request).ingest_readings(body.to_readings())

    @app.get("/devices")
    async def list_devices(request: Request):
        return _service(request).devices_view()

    @app.get("/priority-devices")
    async def priority_devices(request: Request):
        return _service(request).priority_view()

    @app.post("/set-priority")
    async def set_priority(body: SetPriorityIn, request: Request):
        return _service(request).set_priority(body.device_address, body.is_priority)

    @app.post("/notifications")
    async def submit_notification(body: NotificationIn, request: Request):
        event = _service(request).submit_notification(
            body.device_address,
            body.event_type,
            device_name=body.device_name,
            occurred_at=body.timestamp,
        )
        return {"success": True, "notificationId": event.id}

    @app.get("/notifications")
    async def list_notifications(
        request: Request,
        limit: Optional[int] = Query(None, ge=1, description="Maximum events to return"),
    ):
        return _service(request).notifications_view(limit)

    @app.delete("/notifications")
    async def clear_notifications(request: Request):
        return _service(request).clear_notifications()

    @app.get("/system-stats")
    async def system_stats(request: Request):
        return _service(request).system_stats()

    @app.get("/status")
    async def status(request: Request):
        return _service(request).status()

    @app.get("/health")
    async def health(request: Request):
        return _service(request).health_report()

    @app.websocket("/ws")
    async def viewer_channel(ws: WebSocket):
        svc: MonitorService = ws.app.state.service
        await ws.accept()
        subscriber = svc.broadcaster.connect(svc.initial_state())
        sender = asyncio.create_task(_pump(ws, subscriber))
        try:
            while True:
                message = await ws.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000))
                try:
                    raw = message.get("text")
                    if raw is None:
                        raise ValueError("binary frames are not accepted")
                    command = SubscriberCommand.parse(json.loads(raw))
                except ValueError as exc:
                    logger.warning("Viewer %s sent bad command: %s", subscriber.client_id, exc)
                    reply = BroadcastMessage(Topic.ERROR, {"message": str(exc)})
                else:
                    reply = svc.handle_command(command)
                svc.broadcaster.send(subscriber, reply)
        except WebSocketDisconnect:
            pass
        finally:
            svc.broadcaster.disconnect(subscriber)
            sender.cancel()
            await asyncio.gather(sender, return_exceptions=True)

    return app


async def _pump(ws: WebSocket, subscriber: Subscriber) -> None:
    try:
        while True:
            message = await subscriber.queue.get()
            await ws.send_json(message.to_wire())
    except WebSocketDisconnect:
        return


app = create_app()
