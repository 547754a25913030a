"""Configuration loading with fail-fast behavior.

An explicit config path must exist. Without one, ``schemarpc.json`` in the
working directory is used when present; otherwise the Pydantic defaults apply.
"""

import logging
from pathlib import Path

from pydantic import ValidationError

from schemarpc.config.schema import Config
from schemarpc.core.errors import ConfigError, LoadError
from schemarpc.core.load_utils import read_json_object, read_json_object_optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "schemarpc.json"


def load_config(path: Path | None = None, cwd: Path | None = None) -> Config:
    """Load and validate configuration.

    A relative ``schemas.root`` is resolved against the directory of the file
    it came from (or cwd when defaults are used).

    Args:
        path: Explicit config file path.
        cwd: Working directory for the default lookup. Defaults to Path.cwd().

    Returns:
        Validated Config object.

    Raises:
        ConfigError: If the file is missing (explicit path only), contains
            invalid JSON, or fails validation.
    """
    effective_cwd = cwd or Path.cwd()

    if path is not None:
        try:
            data = read_json_object(path, allow_empty=True)
        except LoadError as e:
            raise ConfigError(f"Cannot load config: {e.message}") from e
        base_dir = path.resolve().parent
        source = str(path)
    else:
        default_path = effective_cwd / DEFAULT_CONFIG_NAME
        try:
            found = read_json_object_optional(default_path, allow_empty=True)
        except LoadError as e:
            raise ConfigError(f"Cannot load config: {e.message}") from e
        base_dir = effective_cwd.resolve()
        if found is None:
            logger.debug("No config file found, using Pydantic defaults")
            data = {}
            source = "defaults"
        else:
            data = found
            source = str(default_path)

    try:
        config = Config.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Config validation failed for {source}: {e}") from e

    root = Path(config.schemas.root).expanduser()
    if not root.is_absolute():
        config.schemas.root = str(base_dir / root)

    logger.info("Config loaded from: %s", source)
    return config
