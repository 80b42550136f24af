# =============================================================================
# File: membership_sync/common/base/base_model.py
# Description: Base Pydantic model for all domain events
# =============================================================================

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Final, Dict, Any

from pydantic import BaseModel, Field, ConfigDict

_DEFAULT_DOMAIN_EVENT_VERSION: Final[int] = 1


class BaseEvent(BaseModel):
    """
    Base Pydantic model for all domain events.
    Ensures common metadata fields are present in every event.
    """
    event_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    event_type: str  # Overridden by Literal in specific event types
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: int = Field(default=_DEFAULT_DOMAIN_EVENT_VERSION, description="Version of this event model's schema")

    model_config = ConfigDict(
        frozen=True,  # Events are immutable facts
        from_attributes=True,
        populate_by_name=True,
        extra='allow'  # Tolerate fields added by newer producers
    )

    def to_dict_for_store(self) -> Dict[str, Any]:
        """Serialize the event to a JSON-ready dictionary."""
        return self.model_dump(mode='json')


class BasePayload(BaseModel):
    """
    Base model for external platform payloads embedded in events.
    Unknown keys sent by the platform are kept, never rejected.
    """
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra='allow'
    )
