# =============================================================================
# File: tests/fakes/fake_slack_adapter.py
# Description: Fake implementation of SlackWorkspacePort for unit testing
# Pattern: Ports & Adapters - Fake/Stub adapter
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from membership_sync.slack.enums import MemberRole
from membership_sync.slack.ports.slack_workspace_port import SlackWorkspaceError


@dataclass
class FakeWorkspaceUser:
    """Workspace account held by the fake."""
    user_id: str
    email: str
    role: MemberRole = MemberRole.REGULAR
    channels: Set[str] = field(default_factory=set)
    usergroups: Set[str] = field(default_factory=set)


@dataclass
class CallRecord:
    """Record of a method call for verification."""
    method: str
    args: tuple
    kwargs: Dict[str, Any]


class FakeSlackAdapter:
    """
    Fake implementation of SlackWorkspacePort for unit testing.

    Keeps workspace accounts in memory, applies every operation
    idempotently, and records all calls for verification.

    Usage:
        fake = FakeSlackAdapter()
        fake.add_user("jane@example.com")

        await fake.invite_to_channel("U1", "board")
        assert "board" in fake.user_by_email("jane@example.com").channels

        fake.configure_failure("invite_to_channel", "rate limited", times=2)
    """

    def __init__(self):
        self.users: Dict[str, FakeWorkspaceUser] = {}
        self._calls: List[CallRecord] = []
        self._failures: Dict[str, List[SlackWorkspaceError]] = {}
        self._next_id = 1

    # =========================================================================
    # Test Setup Methods
    # =========================================================================

    def add_user(self, email: str, role: MemberRole = MemberRole.REGULAR) -> FakeWorkspaceUser:
        user = FakeWorkspaceUser(user_id=self._new_id(), email=email, role=role)
        self.users[user.user_id] = user
        return user

    def configure_failure(self, method: str, error_message: str, times: int = 1, permanent: bool = False) -> None:
        """Make the next `times` calls to `method` fail."""
        self._failures[method] = [SlackWorkspaceError(error_message, permanent=permanent) for _ in range(times)]

    def clear(self) -> None:
        """Reset all state between tests."""
        self.users.clear()
        self._calls.clear()
        self._failures.clear()
        self._next_id = 1

    # =========================================================================
    # Test Verification Methods
    # =========================================================================

    def user_by_email(self, email: str) -> Optional[FakeWorkspaceUser]:
        for user in self.users.values():
            if user.email.lower() == email.lower():
                return user
        return None

    def was_called(self, method: str) -> bool:
        return any(c.method == method for c in self._calls)

    def get_call_count(self, method: str) -> int:
        return sum(1 for c in self._calls if c.method == method)

    def get_calls(self, method: str) -> List[CallRecord]:
        return [c for c in self._calls if c.method == method]

    # =========================================================================
    # Internal Helpers
    # =========================================================================

    def _new_id(self) -> str:
        user_id = f"U{self._next_id:04d}"
        self._next_id += 1
        return user_id

    def _record_call(self, method: str, *args, **kwargs) -> None:
        self._calls.append(CallRecord(method=method, args=args, kwargs=kwargs))
        pending = self._failures.get(method)
        if pending:
            raise pending.pop(0)

    def _user(self, user_id: str) -> FakeWorkspaceUser:
        user = self.users.get(user_id)
        if user is None:
            raise SlackWorkspaceError(f"user_not_found: {user_id}", permanent=True)
        return user

    # =========================================================================
    # SlackWorkspacePort Implementation
    # =========================================================================

    async def lookup_user_by_email(self, email: str) -> Optional[str]:
        self._record_call("lookup_user_by_email", email)
        user = self.user_by_email(email)
        return user.user_id if user else None

    async def invite_user(self, email: str, role: MemberRole) -> str:
        self._record_call("invite_user", email, role)
        existing = self.user_by_email(email)
        if existing is not None:
            return existing.user_id
        return self.add_user(email, role).user_id

    async def set_member_role(self, user_id: str, role: MemberRole) -> None:
        self._record_call("set_member_role", user_id, role)
        self._user(user_id).role = role

    async def invite_to_channel(self, user_id: str, channel: str) -> None:
        self._record_call("invite_to_channel", user_id, channel)
        self._user(user_id).channels.add(channel)

    async def kick_from_channel(self, user_id: str, channel: str) -> None:
        self._record_call("kick_from_channel", user_id, channel)
        self._user(user_id).channels.discard(channel)

    async def add_to_usergroup(self, user_id: str, usergroup_handle: str) -> None:
        self._record_call("add_to_usergroup", user_id, usergroup_handle)
        self._user(user_id).usergroups.add(usergroup_handle)

    async def remove_from_usergroup(self, user_id: str, usergroup_handle: str) -> None:
        self._record_call("remove_from_usergroup", user_id, usergroup_handle)
        self._user(user_id).usergroups.discard(usergroup_handle)
