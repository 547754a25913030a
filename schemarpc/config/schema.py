"""Pydantic models for schemarpc configuration validation."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schemarpc.schema.cache import DEFAULT_TTL


class SchemaConfig(BaseModel):
    """Where per-method schema documents live.

    Example in schemarpc.json:
        "schemas": {"root": "schemas"}
    """

    model_config = ConfigDict(extra="forbid")

    root: str = "schemas"
    """Directory holding one {method}.json document per method. Relative paths
    are resolved against the config file's directory."""


class CacheConfig(BaseModel):
    """Schema cache settings."""

    model_config = ConfigDict(extra="forbid")

    enabled: bool = True
    """When false, every request reads its schema from the store."""

    project: str = Field(default="schemarpc", min_length=1)
    """Namespace for cache keys, so several deployments can share a backend."""

    ttl: float = Field(default=DEFAULT_TTL, gt=0)
    """Lifetime of a cached schema in seconds."""


class DispatchConfig(BaseModel):
    """Batch dispatch settings."""

    model_config = ConfigDict(extra="forbid")

    max_concurrency: int = Field(default=16, ge=1, le=1024)
    """Maximum entries of one batch processed at the same time."""

    entry_timeout: float | None = Field(default=None, gt=0)
    """Per-entry time limit in seconds. None disables the limit."""


class ServerConfig(BaseModel):
    """HTTP server settings."""

    model_config = ConfigDict(extra="forbid")

    host: str = "127.0.0.1"
    """Host address to bind to."""

    port: int = Field(default=8765, ge=0, le=65535)
    """Port to listen on. 0 binds an ephemeral port."""

    path: str = "/"
    """URL path that accepts JSON-RPC requests."""

    max_body_size: int = Field(default=1_048_576, gt=0)
    """Largest accepted request body in bytes."""

    max_concurrent: int = Field(default=32, ge=1)
    """Maximum connections handled at the same time."""

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"path must start with '/', got: {v!r}")
        return v


class Config(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="forbid")

    schemas: SchemaConfig = Field(default_factory=SchemaConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    registry: str | None = None
    """Import path of the command registry, as "package.module:attribute".
    The attribute is a CommandRegistry or a zero-argument callable returning one."""

    @field_validator("registry")
    @classmethod
    def validate_registry(cls, v: str | None) -> str | None:
        if v is None:
            return v
        module, sep, attr = v.partition(":")
        if not sep or not module or not attr:
            raise ValueError(f"registry must look like 'module:attribute', got: {v!r}")
        return v
