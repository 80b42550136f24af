# =============================================================================
# File: membership_sync/infra/read_repos/subscription_read_repo.py
# Description: Read repository for subscription projections
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from membership_sync.subscription.read_models import SubscriptionReadModel

log = logging.getLogger("membership_sync.infra.subscription_read_repo")


class SubscriptionReadRepo(ABC):
    """Repository for subscription read models. Rows are immutable values."""

    @abstractmethod
    async def get(self, external_id: int) -> Optional[SubscriptionReadModel]:
        ...

    @abstractmethod
    async def upsert(self, subscription: SubscriptionReadModel) -> SubscriptionReadModel:
        ...

    @abstractmethod
    async def delete(self, external_id: int) -> Optional[SubscriptionReadModel]:
        ...

    @abstractmethod
    async def delete_by_customer(self, customer_external_id: int) -> List[SubscriptionReadModel]:
        """Remove every subscription referencing the customer; returns the removed rows."""

    @abstractmethod
    async def truncate(self) -> int:
        ...

    @abstractmethod
    async def all(self) -> List[SubscriptionReadModel]:
        ...

    async def find_by_customer(self, customer_external_id: int) -> List[SubscriptionReadModel]:
        return [s for s in await self.all() if s.customer_external_id == customer_external_id]

    async def snapshot(self) -> List[Dict[str, object]]:
        return [subscription.model_dump() for subscription in await self.all()]


class InMemorySubscriptionReadRepo(SubscriptionReadRepo):
    """Process-local subscription table."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._rows: Dict[int, SubscriptionReadModel] = {}

    async def get(self, external_id: int) -> Optional[SubscriptionReadModel]:
        return self._rows.get(external_id)

    async def upsert(self, subscription: SubscriptionReadModel) -> SubscriptionReadModel:
        async with self._lock:
            self._rows[subscription.external_id] = subscription
        return subscription

    async def delete(self, external_id: int) -> Optional[SubscriptionReadModel]:
        async with self._lock:
            return self._rows.pop(external_id, None)

    async def delete_by_customer(self, customer_external_id: int) -> List[SubscriptionReadModel]:
        async with self._lock:
            doomed = [key for key, row in self._rows.items() if row.customer_external_id == customer_external_id]
            return [self._rows.pop(key) for key in sorted(doomed)]

    async def truncate(self) -> int:
        async with self._lock:
            removed = len(self._rows)
            self._rows = {}
        log.debug(f"Subscription read model truncated ({removed} rows)")
        return removed

    async def all(self) -> List[SubscriptionReadModel]:
        return [self._rows[key] for key in sorted(self._rows)]
