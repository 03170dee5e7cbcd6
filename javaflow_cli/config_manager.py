"""Read render settings from the ``[render]`` table of ``config.toml``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import toml

from . import config
from .models import RenderConfig

logger = logging.getLogger(__name__)


DEFAULT_RENDER = {
    "ignored_variables": list(config.DEFAULT_IGNORED_VARIABLES),
    "ignored_services": list(config.DEFAULT_IGNORED_SERVICES),
    "collapse_details": False,
    "show_source_reference": False,
}


def load_full_config(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """Load the entire TOML config (all sections); empty if missing or unreadable."""
    path = config_file or config.CONFIG_FILE
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except (OSError, toml.TomlDecodeError) as exc:
        logger.warning("Ignoring unreadable config file %s: %s", path, exc)
        return {}


def load_config(config_file: Optional[Path] = None) -> Dict[str, Any]:
    """Load render settings.

    Returns:
        The ``[render]`` table merged over :data:`DEFAULT_RENDER`; unknown
        keys are dropped.
    """
    merged = {key: (list(value) if isinstance(value, list) else value) for key, value in DEFAULT_RENDER.items()}
    section = load_full_config(config_file).get("render", {})
    if not isinstance(section, dict):
        logger.warning("[render] in config is not a table; using defaults")
        return merged

    for key in DEFAULT_RENDER:
        if key not in section:
            continue
        value = section[key]
        if isinstance(DEFAULT_RENDER[key], list):
            if not isinstance(value, list):
                logger.warning("Config key render.%s must be a list; ignoring", key)
                continue
            merged[key] = [str(v) for v in value]
        else:
            merged[key] = bool(value)
    return merged


def load_render_config(
    ignored_variables: Iterable[str] = (),
    ignored_services: Iterable[str] = (),
    collapse_details: Optional[bool] = None,
    show_source_reference: Optional[bool] = None,
    config_file: Optional[Path] = None,
) -> RenderConfig:
    """Build a :class:`RenderConfig` from the config file plus explicit overrides.

    Ignore lists are unioned with the configured ones; flags replace the
    configured value only when given.
    """
    settings = load_config(config_file)
    return RenderConfig(
        ignored_variable_names=frozenset(settings["ignored_variables"]) | frozenset(ignored_variables),
        ignored_service_names=frozenset(settings["ignored_services"]) | frozenset(ignored_services),
        collapse_details=settings["collapse_details"] if collapse_details is None else collapse_details,
        show_source_reference=(
            settings["show_source_reference"] if show_source_reference is None else show_source_reference
        ),
    )
