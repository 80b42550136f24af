from membership_sync.common.exceptions.exceptions import (
    MembershipSyncException,
    StoreUnavailable,
    EventStoreNotInitialized,
    ProjectionInconsistency,
    ExternalActionFailed,
    ProjectionRebuildError,
    DuplicateHandlerError,
)

__all__ = [
    "MembershipSyncException",
    "StoreUnavailable",
    "EventStoreNotInitialized",
    "ProjectionInconsistency",
    "ExternalActionFailed",
    "ProjectionRebuildError",
    "DuplicateHandlerError",
]
