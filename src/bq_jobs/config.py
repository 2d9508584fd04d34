"""TOML configuration loading and config file discovery."""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "bq_jobs.toml"
CONFIG_ENV = "BQ_JOBS_CONFIG"
EMULATOR_ENV = "BIGQUERY_EMULATOR_HOST"

DEFAULT_API_ROOT = "https://bigquery.googleapis.com"
DEFAULT_TIMEOUT = 60.0


@dataclass(frozen=True)
class ApiConfig:
    """Endpoint configuration for the BigQuery REST API."""

    root: str = DEFAULT_API_ROOT
    timeout: float = DEFAULT_TIMEOUT
    emulator: bool = False


def load_config(path: Path) -> ApiConfig:
    """Read and parse a ``bq_jobs.toml`` file.

    Args:
        path: Absolute or relative path to the TOML config file.

    Returns:
        Parsed ``ApiConfig``.  Keys missing from the ``[api]`` table keep
        their defaults.

    Raises:
        FileNotFoundError: If *path* does not exist.
        TypeError: If ``root`` or ``timeout`` has the wrong type.
    """
    with path.open("rb") as fh:
        raw = tomllib.load(fh)

    api_raw = raw.get("api", {})
    root = api_raw.get("root", DEFAULT_API_ROOT)
    timeout = api_raw.get("timeout", DEFAULT_TIMEOUT)

    if not isinstance(root, str):
        msg = f"[api] root must be a string, got {type(root).__name__}"
        raise TypeError(msg)
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        msg = f"[api] timeout must be a number, got {type(timeout).__name__}"
        raise TypeError(msg)

    return ApiConfig(root=root.rstrip("/"), timeout=float(timeout))


def discover_config(start: Path | None = None) -> Path:
    """Walk from *start* upward looking for ``bq_jobs.toml``.

    Args:
        start: Directory to begin the search.  Defaults to the current
            working directory.

    Returns:
        Absolute path to the discovered config file.

    Raises:
        FileNotFoundError: If no ``bq_jobs.toml`` is found between *start*
            and the filesystem root.
    """
    current = (start or Path.cwd()).resolve()

    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate

        parent = current.parent
        if parent == current:
            break
        current = parent

    msg = f"{CONFIG_FILENAME} not found (searched from {start or Path.cwd()})"
    raise FileNotFoundError(msg)


def load_default_config(start: Path | None = None) -> ApiConfig:
    """Resolve the effective configuration.

    Lookup order is ``$BQ_JOBS_CONFIG``, then a discovered
    ``bq_jobs.toml``, then built-in defaults.  ``$BIGQUERY_EMULATOR_HOST``
    overrides the API root afterwards.

    Args:
        start: Directory to begin config discovery from.

    Returns:
        The effective ``ApiConfig``.
    """
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        config = load_config(Path(env_path))
    else:
        try:
            config = load_config(discover_config(start))
        except FileNotFoundError:
            config = ApiConfig()

    emulator_host = os.environ.get(EMULATOR_ENV)
    if emulator_host:
        if "://" not in emulator_host:
            emulator_host = f"http://{emulator_host}"
        logger.debug("Using BigQuery emulator at %s", emulator_host)
        config = replace(config, root=emulator_host.rstrip("/"), emulator=True)

    return config
