"""Run configuration: YAML file, then environment, then command-line flags.

Example ``gpucts.yaml``::

    pool_size: 8
    release_timeout: 2.5
    backend: mybackend:create_gpu
    suite_dirs:
      webgpu: ./src/webgpu
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from gpucts.device_pool import DEFAULT_POOL_SIZE, DEFAULT_RELEASE_TIMEOUT
from gpucts.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV = "GPUCTS_CONFIG"
POOL_SIZE_ENV = "GPUCTS_POOL_SIZE"
RELEASE_TIMEOUT_ENV = "GPUCTS_RELEASE_TIMEOUT"
BACKEND_ENV = "GPUCTS_BACKEND"


@dataclass
class CtsConfig:
    pool_size: int = DEFAULT_POOL_SIZE
    release_timeout: float = DEFAULT_RELEASE_TIMEOUT
    suite_dirs: Dict[str, str] = field(default_factory=dict)  # suite name -> directory
    backend: Optional[str] = None                             # MODULE:ATTR

    def __post_init__(self) -> None:
        if self.pool_size < 1:
            raise ConfigError(f"pool_size must be at least 1, got {self.pool_size}")
        if self.release_timeout <= 0:
            raise ConfigError(f"release_timeout must be positive, got {self.release_timeout}")


def _from_mapping(data: Mapping[str, Any], source: str) -> CtsConfig:
    known = {f.name for f in fields(CtsConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"{source}: unknown config key(s): {', '.join(unknown)}")
    suite_dirs = data.get("suite_dirs") or {}
    if not isinstance(suite_dirs, dict):
        raise ConfigError(f"{source}: suite_dirs must be a mapping")
    try:
        return CtsConfig(
            pool_size=int(data.get("pool_size", DEFAULT_POOL_SIZE)),
            release_timeout=float(data.get("release_timeout", DEFAULT_RELEASE_TIMEOUT)),
            suite_dirs={str(k): str(v) for k, v in suite_dirs.items()},
            backend=data.get("backend"),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"{source}: {e}") from e


def _apply_env(config: CtsConfig, env: Mapping[str, str]) -> CtsConfig:
    try:
        if env.get(POOL_SIZE_ENV):
            config.pool_size = int(env[POOL_SIZE_ENV])
        if env.get(RELEASE_TIMEOUT_ENV):
            config.release_timeout = float(env[RELEASE_TIMEOUT_ENV])
    except ValueError as e:
        raise ConfigError(f"invalid environment override: {e}") from e
    if env.get(BACKEND_ENV):
        config.backend = env[BACKEND_ENV]
    config.__post_init__()
    return config


def load_config(path: Union[str, Path, None] = None,
                env: Optional[Mapping[str, str]] = None) -> CtsConfig:
    """Load configuration.

    ``path`` defaults to ``$GPUCTS_CONFIG``; with neither, defaults are
    used. Environment variables override file values.
    """
    if env is None:
        env = os.environ
    if path is None:
        path = env.get(CONFIG_ENV) or None

    if path is None:
        config = CtsConfig()
    else:
        path = Path(path)
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigError(f"cannot read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid YAML in {path}: {e}") from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Invalid config file (expected mapping): {path}")
        config = _from_mapping(data, str(path))
        # Relative suite directories are relative to the config file.
        config.suite_dirs = {
            name: str((path.parent / d) if not Path(d).is_absolute() else Path(d))
            for name, d in config.suite_dirs.items()
        }
        logger.debug("Loaded config from %s", path)

    return _apply_env(config, env)
