"""Pydantic request and response models for the HTTP API."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Base64Bytes, BaseModel, Field

from smart_attendance.domain.attendance import AttendanceRecord
from smart_attendance.domain.extraction import BoundingBox, ScanResult
from smart_attendance.domain.identities import IdentityRecord
from smart_attendance.domain.matching import MatchResult
from smart_attendance.domain.sessions import SessionRecord


class RegistrationRequest(BaseModel):
    """Raw frames captured for one identity, base64 encoded."""

    group_id: str
    frames: list[Base64Bytes] = Field(min_length=1)
    sample_count: int | None = Field(default=None, gt=0)


class SessionCreateRequest(BaseModel):
    """Parameters for starting a session."""

    group_id: str
    subject_id: str
    owner_id: str
    mode: Literal["demo", "live"] = "live"
    duration_minutes: int = Field(default=60, gt=0)


class IdentifyRequest(BaseModel):
    """Probe vector to match within a group."""

    probe: list[float] = Field(min_length=1)


class MarkAttendanceRequest(BaseModel):
    """Identity to mark present in a session."""

    identity_id: str
    source: str = "kiosk"


class ScanRequest(BaseModel):
    """A single camera frame, base64 encoded."""

    frame: Base64Bytes
    source: str = "kiosk"


class IdentityResponse(BaseModel):
    id: str
    group_id: str
    status: str
    descriptor_count: int

    @classmethod
    def from_record(cls, identity: IdentityRecord) -> "IdentityResponse":
        return cls(
            id=identity.id,
            group_id=identity.group_id,
            status=identity.status.value,
            descriptor_count=len(identity.descriptors),
        )


class SessionResponse(BaseModel):
    id: UUID
    group_id: str
    subject_id: str
    owner_id: str
    mode: str
    status: str
    start_time: datetime
    expires_at: datetime
    ended_at: datetime | None
    join_code: str

    @classmethod
    def from_record(cls, session: SessionRecord) -> "SessionResponse":
        return cls(
            id=session.id,
            group_id=session.group_id,
            subject_id=session.subject_id,
            owner_id=session.owner_id,
            mode=session.mode.value,
            status=session.status.value,
            start_time=session.start_time,
            expires_at=session.expires_at,
            ended_at=session.ended_at,
            join_code=session.join_code,
        )


class MatchResponse(BaseModel):
    identity_id: str | None
    confidence: float
    matched: bool

    @classmethod
    def from_result(cls, result: MatchResult) -> "MatchResponse":
        return cls(
            identity_id=result.identity_id,
            confidence=result.confidence,
            matched=result.matched,
        )


class AttendanceResponse(BaseModel):
    id: UUID
    identity_id: str
    session_id: UUID
    group_id: str
    subject_id: str
    timestamp: datetime
    present: bool
    source: str

    @classmethod
    def from_record(cls, record: AttendanceRecord) -> "AttendanceResponse":
        return cls(
            id=record.id,
            identity_id=record.identity_id,
            session_id=record.session_id,
            group_id=record.group_id,
            subject_id=record.subject_id,
            timestamp=record.timestamp,
            present=record.present,
            source=record.source,
        )


class BoxResponse(BaseModel):
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_box(cls, box: BoundingBox | None) -> "BoxResponse | None":
        if box is None:
            return None
        return cls(x=box.x, y=box.y, width=box.width, height=box.height)


class ScanFaceResponse(BaseModel):
    match: MatchResponse
    box: BoxResponse | None
    record: AttendanceResponse | None

    @classmethod
    def from_result(cls, result: ScanResult) -> "ScanFaceResponse":
        return cls(
            match=MatchResponse.from_result(result.match),
            box=BoxResponse.from_box(result.box),
            record=AttendanceResponse.from_record(result.record)
            if result.record
            else None,
        )
