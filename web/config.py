"""
Runtime settings for the web application, read from the environment.

Every variable is optional and prefixed with ``CHESSVISION_``:

    CHESSVISION_LOG_LEVEL          logging level name (INFO)
    CHESSVISION_DEFAULT_DEPTH      analysis depth when a request has none (15)
    CHESSVISION_MAX_DEPTH          upper bound for requested depths (20)
    CHESSVISION_DEFAULT_TIMEOUT_MS analysis budget when a request has none (5000)
    CHESSVISION_MAX_TIMEOUT_MS     upper bound for requested budgets (10000)
    CHESSVISION_BOT_TIME_LIMIT_MS  search budget for each bot move (2000)
    CHESSVISION_RANDOM_SEED        seed for the shared random source (unset: OS entropy)
"""

import os
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from engine.constants import DEFAULT_ANALYSIS_DEPTH, MAX_ANALYSIS_DEPTH
from game.service import BOT_TIME_LIMIT_MS, DEFAULT_TIMEOUT_MS, MAX_TIMEOUT_MS

ENV_PREFIX = "CHESSVISION_"


def _get(
    env: Mapping[str, str],
    name: str,
    default: Any,
    cast: Callable[[str], Any] | None = None,
) -> Any:
    raw = env.get(ENV_PREFIX + name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw) if cast else raw
    except ValueError as exc:
        raise ValueError(f"{ENV_PREFIX}{name}={raw!r} is not valid") from exc


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"

    # Analysis limits
    default_depth: int = DEFAULT_ANALYSIS_DEPTH
    max_depth: int = MAX_ANALYSIS_DEPTH
    default_timeout_ms: int = DEFAULT_TIMEOUT_MS
    max_timeout_ms: int = MAX_TIMEOUT_MS

    # Bot
    bot_time_limit_ms: int = BOT_TIME_LIMIT_MS
    random_seed: int | None = None

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if env is None else env
        return cls(
            log_level=str(_get(env, "LOG_LEVEL", "INFO")).upper(),
            default_depth=_get(env, "DEFAULT_DEPTH", DEFAULT_ANALYSIS_DEPTH, int),
            max_depth=_get(env, "MAX_DEPTH", MAX_ANALYSIS_DEPTH, int),
            default_timeout_ms=_get(env, "DEFAULT_TIMEOUT_MS", DEFAULT_TIMEOUT_MS, int),
            max_timeout_ms=_get(env, "MAX_TIMEOUT_MS", MAX_TIMEOUT_MS, int),
            bot_time_limit_ms=_get(env, "BOT_TIME_LIMIT_MS", BOT_TIME_LIMIT_MS, int),
            random_seed=_get(env, "RANDOM_SEED", None, int),
        )
