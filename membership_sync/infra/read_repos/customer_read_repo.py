# =============================================================================
# File: membership_sync/infra/read_repos/customer_read_repo.py
# Description: Read repository for customer projections
#              Projectors write through get/upsert/delete; command handlers
#              and queries read through get/all.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from membership_sync.customer.read_models import CustomerReadModel

log = logging.getLogger("membership_sync.infra.customer_read_repo")


class CustomerReadRepo(ABC):
    """Repository for customer read models. Rows are immutable values."""

    @abstractmethod
    async def get(self, external_id: int) -> Optional[CustomerReadModel]:
        ...

    @abstractmethod
    async def upsert(self, customer: CustomerReadModel) -> CustomerReadModel:
        """Store the row, replacing any row with the same external_id."""

    @abstractmethod
    async def delete(self, external_id: int) -> Optional[CustomerReadModel]:
        """Remove the row; returns what was removed, None if it was absent."""

    @abstractmethod
    async def truncate(self) -> int:
        """Remove every row; returns how many were removed."""

    @abstractmethod
    async def all(self) -> List[CustomerReadModel]:
        ...

    async def count_members(self) -> int:
        return sum(1 for customer in await self.all() if customer.is_member)

    async def snapshot(self) -> List[Dict[str, object]]:
        """Plain, ordered view of every row (used to compare projections)."""
        return [customer.model_dump() for customer in await self.all()]


class InMemoryCustomerReadRepo(CustomerReadRepo):
    """Process-local customer table."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._rows: Dict[int, CustomerReadModel] = {}

    async def get(self, external_id: int) -> Optional[CustomerReadModel]:
        return self._rows.get(external_id)

    async def upsert(self, customer: CustomerReadModel) -> CustomerReadModel:
        async with self._lock:
            self._rows[customer.external_id] = customer
        return customer

    async def delete(self, external_id: int) -> Optional[CustomerReadModel]:
        async with self._lock:
            return self._rows.pop(external_id, None)

    async def truncate(self) -> int:
        async with self._lock:
            removed = len(self._rows)
            self._rows = {}
        log.debug(f"Customer read model truncated ({removed} rows)")
        return removed

    async def all(self) -> List[CustomerReadModel]:
        return [self._rows[key] for key in sorted(self._rows)]
