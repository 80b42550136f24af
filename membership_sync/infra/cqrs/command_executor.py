# =============================================================================
# File: membership_sync/infra/cqrs/command_executor.py
# Description: Command executor with explicit type-based routing and a
#              middleware pipeline. Used by job workers, never by reactors.
# =============================================================================

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

from membership_sync.common.exceptions.exceptions import DuplicateHandlerError

log = logging.getLogger("membership_sync.cqrs.command")


# =============================================================================
# Base Classes
# =============================================================================

class Command(BaseModel):
    """Base class for all commands"""
    command_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    causation_event_id: Optional[uuid.UUID] = None

    model_config = ConfigDict(frozen=True)

    @property
    def command_name(self) -> str:
        return type(self).__name__

    def describe(self) -> Dict[str, Any]:
        """Command payload without bookkeeping ids."""
        return self.model_dump(exclude={"command_id", "causation_event_id"}, mode="json")


class ICommandHandler(ABC):
    """Base class for all command handlers"""

    @abstractmethod
    async def handle(self, command: Command) -> Any:
        """Handle the command and return result"""


# =============================================================================
# Middleware Support
# =============================================================================

class Middleware(ABC):
    """Base middleware class for commands"""

    @abstractmethod
    async def process(
            self,
            command: Command,
            next_handler: Callable[[Command], Awaitable[Any]]
    ) -> Any:
        """Process command and call next handler"""


class LoggingMiddleware(Middleware):
    """Logs every command with the event that caused it"""

    async def process(self, command: Command, next_handler: Callable) -> Any:
        cause = f" [caused by event {command.causation_event_id}]" if command.causation_event_id else ""
        log.info(f"Executing {command.command_name} {command.describe()}{cause}")

        try:
            result = await next_handler(command)
            log.info(f"Executed {command.command_name}{cause}")
            return result
        except Exception as e:
            log.warning(f"{command.command_name} failed{cause}: {e}")
            raise


# =============================================================================
# Executor
# =============================================================================

class CommandExecutor:
    """
    Routes a command to exactly one handler through the middleware pipeline.

    Each command type has exactly one handler; registering a second one
    raises DuplicateHandlerError.
    """

    def __init__(self, middleware: Optional[List[Middleware]] = None):
        self._handlers: Dict[Type[Command], ICommandHandler] = {}
        self._middleware: List[Middleware] = list(middleware) if middleware is not None else [LoggingMiddleware()]

    def use(self, middleware: Middleware) -> 'CommandExecutor':
        """Add middleware to the pipeline"""
        self._middleware.append(middleware)
        return self

    def register_handler(self, command_type: Type[Command], handler: ICommandHandler) -> None:
        existing = self._handlers.get(command_type)
        if existing is not None and existing is not handler:
            raise DuplicateHandlerError(
                f"Command '{command_type.__name__}' already has a registered handler: "
                f"{type(existing).__name__}, attempted: {type(handler).__name__}"
            )
        self._handlers[command_type] = handler
        log.debug(f"Registered handler {type(handler).__name__} for {command_type.__name__}")

    def register_handlers(self, registry: Dict[Type[Command], ICommandHandler]) -> None:
        """Bulk register handlers"""
        for command_type, handler in registry.items():
            self.register_handler(command_type, handler)

    def has_handler(self, command_type: Type[Command]) -> bool:
        return command_type in self._handlers

    async def execute(self, command: Command) -> Any:
        """Send a command through the middleware pipeline to its handler."""
        handler = self._handlers.get(type(command))
        if handler is None:
            registered = sorted(t.__name__ for t in self._handlers)
            raise LookupError(
                f"No handler registered for {command.command_name}. Registered handlers: {registered}"
            )

        async def handler_wrapper(cmd: Command) -> Any:
            return await handler.handle(cmd)

        chain = handler_wrapper
        for middleware in reversed(self._middleware):
            async def wrapped(cmd: Command, mw: Middleware = middleware, next_h=chain) -> Any:
                return await mw.process(cmd, next_h)
            chain = wrapped

        return await chain(command)

    def get_handler_info(self) -> Dict[str, str]:
        return {t.__name__: type(h).__name__ for t, h in self._handlers.items()}
