"""Command registry: the static mapping from method name to command.

A command is a DTO factory plus an async handler. The registry is assembled
once at startup with RegistryBuilder and is read-only afterwards, so it can be
shared across concurrent requests without synchronization.

Example:
    from pydantic import BaseModel

    class CreateUser(BaseModel):
        name: str

    async def create_user(dto: CreateUser) -> SuccessResponse:
        return SuccessResponse(result={"name": dto.name})

    builder = RegistryBuilder()
    builder.register("user.create", create_user, dto=CreateUser)
    registry = builder.build()
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel

from schemarpc.core.errors import RegistryError

# Builds the typed parameter object from schema-valid params
DtoFactory = Callable[[dict[str, Any]], Any]

# Executes the command; returns a Response or a bare result value
CommandHandler = Callable[[Any], Awaitable[Any]]


@dataclass(frozen=True)
class CommandDescriptor:
    """A registered command.

    Attributes:
        handler: Coroutine function taking the DTO.
        dto_factory: Callable building the DTO from validated params, or a
            pydantic model class. None passes the params dict through.
        description: Human-readable summary of the command.
    """

    handler: CommandHandler
    dto_factory: DtoFactory | type[BaseModel] | None = None
    description: str = ""

    def build_dto(self, params: dict[str, Any]) -> Any:
        """Build the DTO for a call.

        Raises:
            Whatever the factory raises (pydantic.ValidationError, TypeError,
            ValueError); the dispatcher turns these into Invalid params.
        """
        factory = self.dto_factory
        if factory is None:
            return params
        if isinstance(factory, type) and issubclass(factory, BaseModel):
            return factory.model_validate(params)
        return factory(params)


class CommandRegistry(Mapping[str, CommandDescriptor]):
    """Read-only mapping of method names to command descriptors."""

    def __init__(self, commands: Mapping[str, CommandDescriptor] | None = None) -> None:
        self._commands: Mapping[str, CommandDescriptor] = MappingProxyType(
            dict(commands or {})
        )

    def __getitem__(self, method: str) -> CommandDescriptor:
        return self._commands[method]

    def __iter__(self) -> Iterator[str]:
        return iter(self._commands)

    def __len__(self) -> int:
        return len(self._commands)

    def methods(self) -> list[str]:
        """Return registered method names, sorted."""
        return sorted(self._commands)

    def __repr__(self) -> str:
        return f"CommandRegistry({self.methods()!r})"


class RegistryBuilder:
    """Collects command registrations and produces a CommandRegistry."""

    def __init__(self) -> None:
        self._commands: dict[str, CommandDescriptor] = {}

    def register(
        self,
        method: str,
        handler: CommandHandler,
        *,
        dto: DtoFactory | type[BaseModel] | None = None,
        description: str = "",
    ) -> None:
        """Register a command under method.

        Raises:
            RegistryError: If method is empty or already registered.
        """
        if not method:
            raise RegistryError("Method name cannot be empty")
        if method in self._commands:
            raise RegistryError(f"Method already registered: {method}")
        self._commands[method] = CommandDescriptor(
            handler=handler,
            dto_factory=dto,
            description=description,
        )

    def command(
        self,
        method: str,
        *,
        dto: DtoFactory | type[BaseModel] | None = None,
        description: str = "",
    ) -> Callable[[CommandHandler], CommandHandler]:
        """Decorator form of register()."""

        def decorator(handler: CommandHandler) -> CommandHandler:
            self.register(method, handler, dto=dto, description=description)
            return handler

        return decorator

    def build(self) -> CommandRegistry:
        return CommandRegistry(self._commands)
