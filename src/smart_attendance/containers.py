"""Dependency container wiring for the application."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from smart_attendance.adapters.httpx_extractor_client import HttpxExtractorClient
from smart_attendance.adapters.simulated_extractor_client import (
    SimulatedExtractorClient,
)
from smart_attendance.adapters.supabase_attendance_repository import (
    SupabaseAttendanceRepository,
)
from smart_attendance.adapters.supabase_audit_repository import SupabaseAuditRepository
from smart_attendance.adapters.supabase_identity_repository import (
    SupabaseIdentityRepository,
)
from smart_attendance.adapters.supabase_image_archive import SupabaseImageArchive
from smart_attendance.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from smart_attendance.config import Settings
from smart_attendance.services.attendance import AttendanceService
from smart_attendance.services.audit import AuditService
from smart_attendance.services.cache import InMemoryCache
from smart_attendance.services.descriptors import DescriptorService
from smart_attendance.services.events import EventBus
from smart_attendance.services.extraction import ExtractorClient
from smart_attendance.services.matching import Matcher, MatchStrategy
from smart_attendance.services.registration import RegistrationService
from smart_attendance.services.scanning import ScanService
from smart_attendance.services.sessions import SessionService
from smart_attendance.services.system import AttendanceSystem


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    event_bus: EventBus
    extractor: ExtractorClient
    system: AttendanceSystem
    scan_service: ScanService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    event_bus = EventBus()
    descriptor_service = DescriptorService(
        repository=SupabaseIdentityRepository(supabase_client),
        cache=InMemoryCache(),
        dimension=resolved_settings.descriptor_dimension,
        snapshot_ttl_seconds=resolved_settings.snapshot_ttl_seconds,
    )
    session_service = SessionService(
        repository=SupabaseSessionRepository(supabase_client),
        events=event_bus,
    )
    audit_service = AuditService(
        SupabaseAuditRepository(supabase_client),
        retry_attempts=resolved_settings.retry_attempts,
        retry_delay_seconds=resolved_settings.retry_delay_seconds,
    )
    attendance_service = AttendanceService(
        repository=SupabaseAttendanceRepository(supabase_client),
        session_service=session_service,
        descriptor_service=descriptor_service,
        audit_service=audit_service,
        events=event_bus,
    )
    if resolved_settings.extractor_backend == "simulated":
        extractor = SimulatedExtractorClient(
            dimension=resolved_settings.descriptor_dimension
        )
    else:
        extractor = HttpxExtractorClient.create(
            resolved_settings.extractor_url,
            timeout_seconds=resolved_settings.extractor_timeout_seconds,
        )
    archive = (
        SupabaseImageArchive(supabase_client, bucket=resolved_settings.archive_bucket)
        if resolved_settings.archive_enabled
        else None
    )
    registration_service = RegistrationService(
        extractor=extractor,
        descriptor_service=descriptor_service,
        archive=archive,
        sample_count=resolved_settings.registration_sample_count,
        retry_attempts=resolved_settings.retry_attempts,
        retry_delay_seconds=resolved_settings.retry_delay_seconds,
    )
    matcher = Matcher(
        dimension=resolved_settings.descriptor_dimension,
        threshold=resolved_settings.match_threshold,
        high_confidence_cutoff=resolved_settings.high_confidence_cutoff,
        strategy=MatchStrategy(resolved_settings.match_strategy),
    )
    system = AttendanceSystem(
        descriptor_service=descriptor_service,
        matcher=matcher,
        session_service=session_service,
        attendance_service=attendance_service,
        registration_service=registration_service,
    )
    scan_service = ScanService(
        extractor=extractor,
        matcher=matcher,
        session_service=session_service,
        descriptor_service=descriptor_service,
        attendance_service=attendance_service,
        retry_attempts=resolved_settings.retry_attempts,
        retry_delay_seconds=resolved_settings.retry_delay_seconds,
    )

    async def close_resources() -> None:
        await extractor.close()
        await asyncio.to_thread(audit_service.shutdown)

    return AppContainer(
        settings=resolved_settings,
        event_bus=event_bus,
        extractor=extractor,
        system=system,
        scan_service=scan_service,
        close_resources=close_resources,
    )
