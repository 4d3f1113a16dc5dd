"""Supabase repository for audit events."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from smart_attendance.services.audit import AuditRepository


@dataclass
class SupabaseAuditRepository(AuditRepository):
    """Supabase-backed audit repository."""

    client: Client

    def create_event(
        self,
        actor_id: str,
        action: str,
        target: str,
        details: dict[str, object],
        occurred_at: datetime,
    ) -> None:
        """Create an audit event row."""
        self.client.table("audit_events").insert(
            {
                "actor_id": actor_id,
                "action": action,
                "target": target,
                "details_json": details,
                "occurred_at": occurred_at.isoformat(),
            }
        ).execute()
