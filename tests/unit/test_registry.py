"""Unit tests for CommandRegistry, RegistryBuilder and CommandDescriptor."""

import pytest
from pydantic import BaseModel, ValidationError

from schemarpc.core.errors import RegistryError
from schemarpc.rpc.registry import CommandDescriptor, CommandRegistry, RegistryBuilder


async def noop(dto):
    return None


class Point(BaseModel):
    x: int
    y: int


class TestRegistryBuilder:
    """Tests for RegistryBuilder."""

    def test_register_and_build(self):
        builder = RegistryBuilder()
        builder.register("a", noop, description="Does nothing")
        registry = builder.build()

        assert "a" in registry
        assert registry["a"].description == "Does nothing"
        assert len(registry) == 1

    def test_duplicate_registration_rejected(self):
        builder = RegistryBuilder()
        builder.register("a", noop)
        with pytest.raises(RegistryError, match="already registered"):
            builder.register("a", noop)

    def test_empty_method_rejected(self):
        with pytest.raises(RegistryError):
            RegistryBuilder().register("", noop)

    def test_command_decorator(self):
        builder = RegistryBuilder()

        @builder.command("point.make", dto=Point)
        async def make_point(dto: Point) -> dict:
            return {"sum": dto.x + dto.y}

        registry = builder.build()
        assert registry["point.make"].handler is make_point
        assert registry["point.make"].dto_factory is Point

    def test_build_is_a_snapshot(self):
        """Registrations after build() don't leak into the built registry."""
        builder = RegistryBuilder()
        builder.register("a", noop)
        registry = builder.build()
        builder.register("b", noop)
        assert "b" not in registry


class TestCommandRegistry:
    """Tests for the read-only registry mapping."""

    def test_get_unknown_is_none(self):
        assert CommandRegistry().get("nope") is None

    def test_methods_sorted(self):
        registry = CommandRegistry(
            {"b": CommandDescriptor(noop), "a": CommandDescriptor(noop)}
        )
        assert registry.methods() == ["a", "b"]
        assert sorted(registry) == ["a", "b"]

    def test_not_mutable(self):
        registry = CommandRegistry({"a": CommandDescriptor(noop)})
        with pytest.raises(TypeError):
            registry["b"] = CommandDescriptor(noop)  # type: ignore[index]


class TestCommandDescriptor:
    """Tests for DTO construction."""

    def test_no_factory_passes_params_through(self):
        params = {"x": 1}
        assert CommandDescriptor(noop).build_dto(params) is params

    def test_pydantic_model_factory(self):
        dto = CommandDescriptor(noop, dto_factory=Point).build_dto({"x": 1, "y": 2})
        assert dto == Point(x=1, y=2)

    def test_pydantic_model_failure_raises(self):
        with pytest.raises(ValidationError):
            CommandDescriptor(noop, dto_factory=Point).build_dto({"x": "one", "y": 2})

    def test_callable_factory(self):
        descriptor = CommandDescriptor(noop, dto_factory=lambda p: (p["x"], p["y"]))
        assert descriptor.build_dto({"x": 1, "y": 2}) == (1, 2)
