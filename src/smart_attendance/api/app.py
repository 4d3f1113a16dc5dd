"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse, StreamingResponse

from smart_attendance.api.auth import require_api_token
from smart_attendance.api.routes import router
from smart_attendance.app_logging import configure_logging
from smart_attendance.containers import AppContainer
from smart_attendance.errors import (
    AttendanceError,
    IdentityNotFoundError,
    NoCandidatesError,
    SessionConflictError,
    SessionInactiveError,
    SessionNotFoundError,
    ValidationError,
)
from smart_attendance.services.events import ChangeEvent, to_sse_message

_ERROR_STATUS: dict[type[AttendanceError], int] = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NoCandidatesError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    SessionConflictError: status.HTTP_409_CONFLICT,
    SessionInactiveError: status.HTTP_409_CONFLICT,
    SessionNotFoundError: status.HTTP_404_NOT_FOUND,
    IdentityNotFoundError: status.HTTP_404_NOT_FOUND,
}
_KEEPALIVE_SECONDS = 15.0
_EVENT_QUEUE_SIZE = 50


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.include_router(router)

    @app.exception_handler(AttendanceError)
    async def attendance_error_handler(
        request: Request, exc: AttendanceError
    ) -> JSONResponse:
        status_code = _status_for(exc)
        logger.info(
            "Request failed: %s %s -> %s (%s)",
            request.method,
            request.url.path,
            status_code,
            type(exc).__name__,
        )
        return JSONResponse(
            status_code=status_code,
            content={"error": type(exc).__name__, "detail": str(exc)},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/events", dependencies=[Depends(require_api_token)])
    async def stream_events(request: Request) -> StreamingResponse:
        """Stream session and attendance changes as server-sent events."""
        state_container: AppContainer = request.app.state.container
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=_EVENT_QUEUE_SIZE)

        def offer(event: ChangeEvent) -> None:
            if queue.full():
                logger.warning("Event stream queue full, dropping %s", event.type.value)
                return
            queue.put_nowait(event)

        unsubscribe = state_container.event_bus.subscribe(
            lambda event: loop.call_soon_threadsafe(offer, event)
        )

        async def stream() -> AsyncIterator[str]:
            try:
                while not await request.is_disconnected():
                    try:
                        event = await asyncio.wait_for(
                            queue.get(), timeout=_KEEPALIVE_SECONDS
                        )
                    except TimeoutError:
                        yield ": keep-alive\n\n"
                        continue
                    yield to_sse_message(event)
            finally:
                unsubscribe()

        return StreamingResponse(stream(), media_type="text/event-stream")

    return app


def _status_for(exc: AttendanceError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in _ERROR_STATUS:
            return _ERROR_STATUS[error_type]
    return status.HTTP_400_BAD_REQUEST
