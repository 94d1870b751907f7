"""Engine configuration with environment variable overrides."""

import logging
import os
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

ENV_PREFIX = "TXTFLOW_"


@dataclass(frozen=True)
class EngineConfig:
    """
    Settings shared by the engine and the command line front end.

    Attributes:
        timeout: Per-stage timeout in seconds. None waits forever.
        cwd: Working directory for spawned stages. None inherits ours.
        log_level: Name of the level for the `txtflow` logger.
        log_file: Optional path of a rotating log file.
    """

    timeout: Optional[float] = None
    cwd: Optional[str] = None
    log_level: str = "WARNING"
    log_file: Optional[str] = None

    def with_overrides(self, **overrides: Any) -> "EngineConfig":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _parse_timeout(value: str) -> Optional[float]:
    if value.strip().lower() in ("", "none", "0"):
        return None
    try:
        timeout = float(value)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}TIMEOUT must be a number, got '{value}'") from None
    if timeout < 0:
        raise ValueError(f"{ENV_PREFIX}TIMEOUT must be >= 0, got {timeout}")
    return timeout


def _parse_log_level(value: str) -> str:
    level = value.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Unknown log level '{value}'")
    return level


def load_config(environ: Optional[Mapping[str, str]] = None) -> EngineConfig:
    """
    Build an EngineConfig from TXTFLOW_* environment variables.

    Recognised variables: TXTFLOW_TIMEOUT, TXTFLOW_CWD, TXTFLOW_LOG_LEVEL,
    TXTFLOW_LOG_FILE. Unset variables keep the defaults.

    Args:
        environ: Mapping to read instead of os.environ.

    Raises:
        ValueError: If a variable holds an invalid value.
    """
    env = os.environ if environ is None else environ
    config = EngineConfig()

    timeout = env.get(f"{ENV_PREFIX}TIMEOUT")
    if timeout is not None:
        config = replace(config, timeout=_parse_timeout(timeout))

    cwd = env.get(f"{ENV_PREFIX}CWD")
    if cwd:
        config = replace(config, cwd=cwd)

    log_level = env.get(f"{ENV_PREFIX}LOG_LEVEL")
    if log_level:
        config = replace(config, log_level=_parse_log_level(log_level))

    log_file = env.get(f"{ENV_PREFIX}LOG_FILE")
    if log_file:
        config = replace(config, log_file=log_file)

    return config
