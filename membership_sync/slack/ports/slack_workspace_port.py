# =============================================================================
# File: membership_sync/slack/ports/slack_workspace_port.py
# Description: Port interface for chat workspace membership operations
# Pattern: Hexagonal Architecture / Ports & Adapters
# =============================================================================

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from membership_sync.slack.enums import MemberRole


class SlackWorkspaceError(Exception):
    """Raised by adapters when a workspace call fails"""

    def __init__(self, message: str, permanent: bool = False):
        super().__init__(message)
        # Permanent errors (unknown channel, invalid user) are not retried
        self.__permanent__ = permanent


@runtime_checkable
class SlackWorkspacePort(Protocol):
    """
    Port: Chat Workspace Membership

    Defined by: Slack domain (command handlers)
    Implemented by: HTTP adapters outside this package; tests use
    tests/fakes/fake_slack_adapter.py

    Every operation must be idempotent: inviting a user already in a
    channel, or removing one who is absent, succeeds without change.
    Adapters raise SlackWorkspaceError on failure.
    """

    # =========================================================================
    # Users
    # =========================================================================

    async def lookup_user_by_email(self, email: str) -> Optional[str]:
        """Workspace user id for an email, None if the user has no account."""
        ...

    async def invite_user(self, email: str, role: MemberRole) -> str:
        """Invite a new account with the given role; returns its user id."""
        ...

    async def set_member_role(self, user_id: str, role: MemberRole) -> None:
        ...

    # =========================================================================
    # Channels and user groups
    # =========================================================================

    async def invite_to_channel(self, user_id: str, channel: str) -> None:
        ...

    async def kick_from_channel(self, user_id: str, channel: str) -> None:
        ...

    async def add_to_usergroup(self, user_id: str, usergroup_handle: str) -> None:
        ...

    async def remove_from_usergroup(self, user_id: str, usergroup_handle: str) -> None:
        ...
