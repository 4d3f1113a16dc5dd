"""Attendance API endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Request, Response, status

from smart_attendance.api.auth import require_api_token
from smart_attendance.api.models import (
    AttendanceResponse,
    IdentifyRequest,
    IdentityResponse,
    MarkAttendanceRequest,
    MatchResponse,
    RegistrationRequest,
    ScanFaceResponse,
    ScanRequest,
    SessionCreateRequest,
    SessionResponse,
)

if TYPE_CHECKING:
    from smart_attendance.containers import AppContainer

router = APIRouter(dependencies=[Depends(require_api_token)])


def _container(request: Request) -> AppContainer:
    return request.app.state.container


@router.post("/identities/{identity_id}/registration")
async def register_identity(
    identity_id: str, body: RegistrationRequest, request: Request
) -> IdentityResponse:
    """Register an identity from captured frames."""
    identity = await _container(request).system.register_identity(
        identity_id, body.group_id, body.frames, body.sample_count
    )
    return IdentityResponse.from_record(identity)


@router.get("/identities/{identity_id}/attendance")
async def list_attendance(identity_id: str, request: Request) -> dict[str, object]:
    """Return all attendance records of an identity."""
    records = _container(request).system.list_attendance(identity_id)
    return {"records": [AttendanceResponse.from_record(record) for record in records]}


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(body: SessionCreateRequest, request: Request) -> SessionResponse:
    """Start an attendance session for a group."""
    session = _container(request).system.create_session(
        body.group_id,
        body.subject_id,
        body.owner_id,
        body.mode,
        body.duration_minutes,
    )
    return SessionResponse.from_record(session)


@router.post("/sessions/{session_id}/end", status_code=status.HTTP_204_NO_CONTENT)
async def end_session(session_id: UUID, request: Request) -> Response:
    """End a session before its scheduled expiry."""
    _container(request).system.end_session(session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/sessions/{session_id}/attendance")
async def mark_attendance(
    session_id: UUID, body: MarkAttendanceRequest, request: Request
) -> AttendanceResponse:
    """Mark an identity present; repeating the call is safe."""
    record = _container(request).system.mark_attendance(
        session_id, body.identity_id, body.source
    )
    return AttendanceResponse.from_record(record)


@router.post("/sessions/{session_id}/scan")
async def scan_frame(
    session_id: UUID, body: ScanRequest, request: Request
) -> dict[str, object]:
    """Identify every face in a frame and mark recognized identities."""
    results = await _container(request).scan_service.process_frame(
        session_id, body.frame, body.source
    )
    return {"faces": [ScanFaceResponse.from_result(result) for result in results]}


@router.get("/groups/{group_id}/active-session")
async def get_active_session(group_id: str, request: Request) -> dict[str, object]:
    """Return the group's active session, or null."""
    session = _container(request).system.get_active_session(group_id)
    return {"session": SessionResponse.from_record(session) if session else None}


@router.post("/groups/{group_id}/identify")
async def identify(
    group_id: str, body: IdentifyRequest, request: Request
) -> MatchResponse:
    """Match a probe vector against a group's registered identities."""
    result = _container(request).system.identify(body.probe, group_id)
    return MatchResponse.from_result(result)
