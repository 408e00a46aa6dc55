import logging
import os
from pathlib import Path

from dotenv import dotenv_values

_ENV_PATH = Path(".env").resolve()  # absolute path = no cwd surprises
_ENV_EXAMPLE_PATH = Path("env.example").resolve()

_loaded_once: bool = False

_logger = logging.getLogger(__name__)


def _fill_missing(path: Path) -> int:
    if not path.exists():
        return 0
    filled = 0
    for k, v in (dotenv_values(path) or {}).items():
        if k and v is not None and k not in os.environ:
            os.environ[str(k)] = str(v)
            filled += 1
    return filled


def load_env(force: bool = False) -> None:
    """Load environment variables from ``.env`` and ``env.example``.

    Values already present in the process environment always win, so
    programmatic overrides (deployment env, monkeypatch in tests) are never
    clobbered. ``.env`` is applied before ``env.example``; both only fill
    missing keys. Repeated calls are no-ops unless ``force`` is set.
    """
    global _loaded_once

    if _loaded_once and not force:
        return

    applied_env = _fill_missing(_ENV_PATH)
    filled_example = _fill_missing(_ENV_EXAMPLE_PATH)
    _loaded_once = True

    _logger.debug(
        "env_loader: applied .env=%d, env.example=%d",
        applied_env,
        filled_example,
    )
