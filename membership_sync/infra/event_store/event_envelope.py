# =============================================================================
# File: membership_sync/infra/event_store/event_envelope.py
# Description: Event envelope - the immutable stored form of a domain event
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from uuid import UUID

from membership_sync.common.base.base_model import BaseEvent
from membership_sync.infra.event_bus.event_registry import get_event_model


@dataclass(frozen=True)
class EventEnvelope:
    """Stored event: typed name + structured payload + sequence + timestamp"""
    event_id: UUID
    event_type: str
    event_data: Dict[str, Any]
    sequence_number: int
    stored_at: datetime
    event_version: int = 1
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_event(
            cls,
            event: BaseEvent,
            sequence_number: int,
            stored_at: Optional[datetime] = None,
            metadata: Optional[Dict[str, Any]] = None
    ) -> EventEnvelope:
        """Create envelope from a domain event"""
        return cls(
            event_id=event.event_id,
            event_type=event.event_type,
            event_data=event.to_dict_for_store(),
            sequence_number=sequence_number,
            stored_at=stored_at or datetime.now(timezone.utc),
            event_version=getattr(event, 'version', 1),
            metadata=dict(metadata or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        return {
            "event_id": str(self.event_id),
            "event_type": self.event_type,
            "event_data": self.event_data,
            "sequence_number": self.sequence_number,
            "stored_at": self.stored_at.isoformat(),
            "event_version": self.event_version,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> EventEnvelope:
        """Recreate from stored dictionary"""
        return cls(
            event_id=UUID(data["event_id"]),
            event_type=data["event_type"],
            event_data=data["event_data"],
            sequence_number=int(data["sequence_number"]),
            stored_at=datetime.fromisoformat(data["stored_at"]),
            event_version=data.get("event_version", 1),
            metadata=data.get("metadata") or {},
        )

    def to_event_object(self) -> Optional[BaseEvent]:
        """
        Deserialize event_data back to its Pydantic event model.

        Returns:
            Event object if the event type is registered, None otherwise
            (unknown event types come from newer producers and are skipped).
        """
        event_model_class = get_event_model(self.event_type)
        if event_model_class is None:
            return None
        return event_model_class.model_validate(self.event_data)
