from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional


ENV_PREFIX = "CHESS_RULES_"


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the HTTP service.

    Read from ``CHESS_RULES_*`` environment variables; unset variables keep
    the defaults below.
    """

    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    max_perft_depth: int = 3

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``environ`` (default: ``os.environ``).

        Raises:
            ValueError: If a numeric variable is not an integer in range, or
                the log level is not a known ``logging`` level name.
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        host = env.get(ENV_PREFIX + "HOST", defaults.host)
        port = _int_var(env, "PORT", defaults.port)
        if not 0 < port < 65536:
            raise ValueError(f"{ENV_PREFIX}PORT out of range: {port}")
        log_level = env.get(ENV_PREFIX + "LOG_LEVEL", defaults.log_level).upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValueError(f"unknown log level: {log_level!r}")
        max_perft_depth = _int_var(env, "MAX_PERFT_DEPTH", defaults.max_perft_depth)
        if max_perft_depth < 0:
            raise ValueError(f"{ENV_PREFIX}MAX_PERFT_DEPTH must be >= 0")
        return cls(
            host=host,
            port=port,
            log_level=log_level,
            max_perft_depth=max_perft_depth,
        )


def _int_var(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(ENV_PREFIX + name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from e
