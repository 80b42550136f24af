# =============================================================================
# File: membership_sync/slack/command_handlers/membership_handlers.py
# Description: Command handlers executing workspace commands via the
#              SlackWorkspacePort. Run by job workers with retry.
# =============================================================================

from __future__ import annotations

import logging
from typing import Optional

from membership_sync.customer.read_models import CustomerReadModel
from membership_sync.infra.cqrs.command_executor import CommandExecutor, ICommandHandler
from membership_sync.infra.read_repos.customer_read_repo import CustomerReadRepo
from membership_sync.infra.reliability.retry import PermanentError
from membership_sync.slack.commands import (
    AddToChannelCommand,
    AddToUserGroupCommand,
    DemoteToPublicOnlyMemberCommand,
    InviteAsIdCheckOnlyMemberCommand,
    PromoteToRegularMemberCommand,
    RemoveFromChannelCommand,
    RemoveFromUserGroupCommand,
)
from membership_sync.slack.enums import MemberRole
from membership_sync.slack.ports.slack_workspace_port import SlackWorkspacePort

log = logging.getLogger("membership_sync.slack.handlers")


class CustomerNotResolvable(PermanentError):
    """The command's customer has no row in the read model or no workspace account."""


class SlackCommandHandler(ICommandHandler):
    """Shared customer -> workspace user resolution."""

    def __init__(self, workspace: SlackWorkspacePort, customer_repo: CustomerReadRepo):
        self.workspace = workspace
        self.customer_repo = customer_repo

    async def _customer(self, customer_id: int) -> CustomerReadModel:
        customer = await self.customer_repo.get(customer_id)
        if customer is None:
            raise CustomerNotResolvable(f"Customer {customer_id} is not in the customer read model")
        return customer

    async def _user_id(self, customer: CustomerReadModel) -> Optional[str]:
        return await self.workspace.lookup_user_by_email(customer.email)

    async def _require_user_id(self, customer: CustomerReadModel) -> str:
        user_id = await self._user_id(customer)
        if user_id is None:
            raise CustomerNotResolvable(f"Customer {customer.external_id} has no workspace account")
        return user_id


# =============================================================================
# Channels and user groups
# =============================================================================

class AddToChannelHandler(SlackCommandHandler):
    async def handle(self, command: AddToChannelCommand) -> None:
        customer = await self._customer(command.customer_id)
        user_id = await self._require_user_id(customer)
        await self.workspace.invite_to_channel(user_id, command.channel)


class RemoveFromChannelHandler(SlackCommandHandler):
    async def handle(self, command: RemoveFromChannelCommand) -> None:
        customer = await self._customer(command.customer_id)
        user_id = await self._user_id(customer)
        if user_id is None:
            log.info(f"Customer {command.customer_id} has no workspace account, nothing to remove")
            return
        await self.workspace.kick_from_channel(user_id, command.channel)


class AddToUserGroupHandler(SlackCommandHandler):
    async def handle(self, command: AddToUserGroupCommand) -> None:
        customer = await self._customer(command.customer_id)
        user_id = await self._require_user_id(customer)
        await self.workspace.add_to_usergroup(user_id, command.usergroup_handle)


class RemoveFromUserGroupHandler(SlackCommandHandler):
    async def handle(self, command: RemoveFromUserGroupCommand) -> None:
        customer = await self._customer(command.customer_id)
        user_id = await self._user_id(customer)
        if user_id is None:
            log.info(f"Customer {command.customer_id} has no workspace account, nothing to remove")
            return
        await self.workspace.remove_from_usergroup(user_id, command.usergroup_handle)


# =============================================================================
# Account type
# =============================================================================

class DemoteToPublicOnlyMemberHandler(SlackCommandHandler):
    async def handle(self, command: DemoteToPublicOnlyMemberCommand) -> None:
        customer = await self._customer(command.customer_id)
        user_id = await self._user_id(customer)
        if user_id is None:
            log.info(f"Customer {command.customer_id} has no workspace account, nothing to demote")
            return
        await self.workspace.set_member_role(user_id, MemberRole.PUBLIC_ONLY)


class PromoteToRegularMemberHandler(SlackCommandHandler):
    """Promotes an existing account, or invites the customer as a regular member."""

    async def handle(self, command: PromoteToRegularMemberCommand) -> None:
        customer = await self._customer(command.customer_id)
        user_id = await self._user_id(customer)
        if user_id is None:
            await self.workspace.invite_user(customer.email, MemberRole.REGULAR)
            return
        await self.workspace.set_member_role(user_id, MemberRole.REGULAR)


class InviteAsIdCheckOnlyMemberHandler(SlackCommandHandler):
    """Invites a new account limited to the id-check channel. Existing accounts are left alone."""

    async def handle(self, command: InviteAsIdCheckOnlyMemberCommand) -> None:
        customer = await self._customer(command.customer_id)
        user_id = await self._user_id(customer)
        if user_id is not None:
            log.info(f"Customer {command.customer_id} already has workspace account {user_id}")
            return
        await self.workspace.invite_user(customer.email, MemberRole.ID_CHECK_ONLY)


def register_slack_handlers(
        executor: CommandExecutor,
        workspace: SlackWorkspacePort,
        customer_repo: CustomerReadRepo,
) -> CommandExecutor:
    """Wire every workspace command to its handler."""
    executor.register_handlers({
        AddToChannelCommand: AddToChannelHandler(workspace, customer_repo),
        RemoveFromChannelCommand: RemoveFromChannelHandler(workspace, customer_repo),
        AddToUserGroupCommand: AddToUserGroupHandler(workspace, customer_repo),
        RemoveFromUserGroupCommand: RemoveFromUserGroupHandler(workspace, customer_repo),
        DemoteToPublicOnlyMemberCommand: DemoteToPublicOnlyMemberHandler(workspace, customer_repo),
        PromoteToRegularMemberCommand: PromoteToRegularMemberHandler(workspace, customer_repo),
        InviteAsIdCheckOnlyMemberCommand: InviteAsIdCheckOnlyMemberHandler(workspace, customer_repo),
    })
    return executor
