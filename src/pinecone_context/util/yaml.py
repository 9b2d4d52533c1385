import copy
import os
import re
from pathlib import Path
from typing import Any, cast

import structlog
import yaml  # type: ignore[import-untyped]

logger = structlog.get_logger()

_ENV_PATTERN = re.compile(r"\$\(([^)]+)\)")


def _resolve_env_vars(
    value: Any,
    required_vars: set[str] | None = None,
) -> Any:
    """Recursively resolve ``$(VAR)`` placeholders to environment variables.

    Placeholders that are missing from the environment resolve to an empty
    string, unless the name appears in *required_vars*, in which case a
    :class:`ValueError` is raised.
    """

    def _replace(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.getenv(var_name)
        if env_value is None and required_vars and var_name in required_vars:
            msg = f"Missing required environment variable: {var_name}"
            raise ValueError(msg)
        return env_value if env_value is not None else ""

    if isinstance(value, str):
        return _ENV_PATTERN.sub(_replace, value)
    if isinstance(value, dict):
        return {k: _resolve_env_vars(v, required_vars) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_env_vars(item, required_vars) for item in value]
    return value


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_yaml_config(
    config_path: Path,
    defaults: dict[str, Any] | None = None,
    required_vars: set[str] | None = None,
) -> dict[str, Any]:
    """Load a YAML config file and resolve ``$(VAR)`` env-var placeholders.

    Args:
        config_path: Path to the YAML file.
        defaults: Base values. Returned as-is when the file does not exist,
            otherwise the file's sections are merged over them.
        required_vars: Environment variable names that *must* be present.
            A :class:`ValueError` is raised when any of these are missing.
    """
    if not config_path.exists():
        logger.debug("config_not_found", path=str(config_path))
        return copy.deepcopy(defaults) if defaults else {}

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    if defaults:
        raw = _merge(defaults, raw)

    resolved: dict[str, Any] = cast(dict[str, Any], _resolve_env_vars(raw, required_vars))
    return resolved
