# =============================================================================
# File: membership_sync/slack/commands.py
# Description: Commands against the chat workspace, enqueued by reactors
#              All commands are idempotent at the workspace
# =============================================================================

from __future__ import annotations

from membership_sync.infra.cqrs.command_executor import Command


class SlackCommand(Command):
    """Command targeting the workspace account of one platform customer"""
    customer_id: int


# =============================================================================
# SECTION: Channels
# =============================================================================

class AddToChannelCommand(SlackCommand):
    channel: str


class RemoveFromChannelCommand(SlackCommand):
    channel: str


# =============================================================================
# SECTION: User groups
# =============================================================================

class AddToUserGroupCommand(SlackCommand):
    usergroup_handle: str


class RemoveFromUserGroupCommand(SlackCommand):
    usergroup_handle: str


# =============================================================================
# SECTION: Account type
# =============================================================================

class DemoteToPublicOnlyMemberCommand(SlackCommand):
    pass


class PromoteToRegularMemberCommand(SlackCommand):
    pass


class InviteAsIdCheckOnlyMemberCommand(SlackCommand):
    pass
