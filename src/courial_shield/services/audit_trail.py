"""In-memory audit trail for claim and membership decisions.

Every decision the claims workflow takes (submission, rejection, approval,
payout, denial, cancellation, proof-of-payment requests) is appended here.
The host application persists the trail by exporting it as JSON lines.
"""

import json
import logging
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from courial_shield.schemas.audit import AuditEvent, AuditEventType
from courial_shield.utils.dates import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class AuditTrail:
    """Append-only, thread-safe event log.

    Usage:
        trail = AuditTrail()
        trail.record(AuditEventType.CLAIM_SUBMITTED, "mem_1", claim_id="clm_1")
        trail.for_claim("clm_1")
        trail.export_jsonl(Path("output/audit.jsonl"))
    """

    def __init__(self) -> None:
        self._events: List[AuditEvent] = []
        self._lock = threading.Lock()

    def _generate_event_id(self) -> str:
        return f"evt_{uuid.uuid4().hex[:12]}"

    def record(
        self,
        event_type: AuditEventType,
        member_id: str,
        claim_id: Optional[str] = None,
        summary: str = "",
        details: Optional[Dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> AuditEvent:
        """Append an event and return it."""
        event = AuditEvent(
            event_id=self._generate_event_id(),
            event_type=event_type,
            member_id=member_id,
            claim_id=claim_id,
            created_at=ensure_utc(now) if now else utc_now(),
            summary=summary,
            details=details or {},
        )
        with self._lock:
            self._events.append(event)
        logger.debug(
            f"Audit {event.event_type.value} member={member_id}"
            + (f" claim={claim_id}" if claim_id else "")
        )
        return event

    @property
    def events(self) -> List[AuditEvent]:
        with self._lock:
            return list(self._events)

    def for_member(self, member_id: str) -> List[AuditEvent]:
        return [e for e in self.events if e.member_id == member_id]

    def for_claim(self, claim_id: str) -> List[AuditEvent]:
        return [e for e in self.events if e.claim_id == claim_id]

    def of_type(self, event_type: AuditEventType) -> List[AuditEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def export_jsonl(self, path: Union[str, Path]) -> int:
        """Append all events to a JSON lines file.

        Returns:
            Number of events written.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        events = self.events
        with open(path, "a", encoding="utf-8") as f:
            for event in events:
                f.write(json.dumps(event.model_dump(mode="json"), ensure_ascii=False) + "\n")
        logger.info(f"Exported {len(events)} audit event(s) to {path}")
        return len(events)
