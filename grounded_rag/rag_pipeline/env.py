"""Loading of ``.env`` files for the pipeline configuration."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)

_LOADED_PATHS: set = set()


def default_env_path() -> Path:
    """Return the ``.env`` location used when none is given.

    ``RAG_ENV_FILE`` wins; otherwise the file next to the command-line
    scripts (one level above this package) is used.
    """
    override = os.getenv("RAG_ENV_FILE")
    if override:
        return Path(override)
    return Path(__file__).resolve().parents[1] / ".env"


def parse_env_file(path: Union[str, Path]) -> Dict[str, str]:
    """Parse ``KEY=VALUE`` lines, ignoring blanks, comments and ``export``."""
    values: Dict[str, str] = {}
    with Path(path).open("r", encoding="utf-8") as handle:
        for raw_line in handle:
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            if line.startswith("export "):
                line = line[len("export "):]
            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip()
            if not key:
                continue
            if len(value) >= 2 and value[0] == value[-1] and value[0] in {'"', "'"}:
                value = value[1:-1]
            values[key] = value
    return values


def load_env(path: Optional[Union[str, Path]] = None, *, override: bool = False) -> bool:
    """Load a ``.env`` file into ``os.environ``.

    Variables that are already set are kept unless ``override`` is true.
    Each path is read at most once per process.

    Returns
    -------
    bool
        ``True`` if the file was read during this call.
    """
    candidate = Path(path) if path is not None else default_env_path()
    key = str(candidate.resolve())
    if key in _LOADED_PATHS and not override:
        return False
    try:
        values = parse_env_file(candidate)
    except FileNotFoundError:
        _LOADED_PATHS.add(key)
        return False
    except OSError as exc:
        logger.warning("Could not read environment file %s: %s", candidate, exc)
        return False
    for name, value in values.items():
        if override:
            os.environ[name] = value
        else:
            os.environ.setdefault(name, value)
    _LOADED_PATHS.add(key)
    logger.debug("Loaded %d variables from %s", len(values), candidate)
    return True
