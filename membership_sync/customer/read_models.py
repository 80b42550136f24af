# =============================================================================
# File: membership_sync/customer/read_models.py
# Description: Pydantic read model for customer projections
# =============================================================================

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from membership_sync.customer.events import CustomerPayload


class CustomerReadModel(BaseModel):
    """Current state of one platform customer."""
    external_id: int
    email: str
    username: str = ""
    first_name: str = ""
    last_name: str = ""
    is_member: bool = False

    model_config = ConfigDict(frozen=True, from_attributes=True)

    @classmethod
    def from_payload(cls, customer: CustomerPayload) -> CustomerReadModel:
        return cls(
            external_id=customer.id,
            email=customer.email,
            username=customer.username,
            first_name=customer.first_name,
            last_name=customer.last_name,
        )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
