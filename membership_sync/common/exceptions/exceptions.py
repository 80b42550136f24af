# membership_sync/common/exceptions/exceptions.py
# =============================================================================
# Custom exceptions for Membership Sync
# =============================================================================

from typing import Optional


class MembershipSyncException(Exception):
    """Base exception for Membership Sync"""
    pass


class StoreUnavailable(MembershipSyncException):
    """
    Raised when an event could not be durably appended.

    The originating operation must be aborted: the event is considered
    not to have happened.
    """
    pass


class EventStoreNotInitialized(MembershipSyncException):
    """Raised when the event bus is used before initialize()"""
    pass


class ProjectionInconsistency(MembershipSyncException):
    """
    Raised when an event references an entity absent from a read model.

    Signals log corruption or a lost earlier event. Reported to operators
    by the dispatcher; never crashes sibling handlers.
    """

    def __init__(self, message: str, entity: Optional[str] = None, external_id: Optional[int] = None):
        super().__init__(message)
        self.entity = entity
        self.external_id = external_id


class ExternalActionFailed(MembershipSyncException):
    """
    Raised when a command failed against the external chat workspace.

    Owned by the job layer; never rolls back the event log.
    """

    def __init__(self, message: str, command_name: Optional[str] = None, attempts: int = 0):
        super().__init__(message)
        self.command_name = command_name
        self.attempts = attempts


class ProjectionRebuildError(MembershipSyncException):
    """Raised when projection rebuild fails or cannot start"""
    pass


class DuplicateHandlerError(MembershipSyncException):
    """Raised when a second executor is registered for a command type"""
    pass
