"""
Settings for the tiergrid command line tool.

Defaults live in DEFAULTS below. A user file, YAML or JSON, may override
any of them; the first one found is used:
    1. ./tiergrid.yaml or ./tiergrid.json (current directory)
    2. ~/.config/tiergrid/config.yaml or config.json
    3. ~/.tiergrid.yaml or ~/.tiergrid.json

Library functions never read these settings. They take explicit
keyword arguments, and the command line tool fills them in from here.

Usage:
    from tiergrid.config import config

    short = config['io']['use_short_form']
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)


# =============================================================================
# DEFAULT CONFIGURATION
# =============================================================================

DEFAULTS = {
    # -------------------------------------------------------------------------
    # Reading and writing TextGrid files
    # -------------------------------------------------------------------------
    'io': {
        'encoding': 'utf-8',          # Encoding of written files
        'read_raw': False,            # Keep blank-label entries when reading
        'use_short_form': True,       # Write the compact form by default
        'min_interval_length': 1e-8,  # Drop shorter intervals on save (null keeps all)
    },

    # -------------------------------------------------------------------------
    # CSV export
    # -------------------------------------------------------------------------
    'csv': {
        'include_header': True,
    },

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    'logging': {
        'level': 'WARNING',  # DEBUG, INFO, WARNING, ERROR
    },
}


# =============================================================================
# CONFIG LOADING
# =============================================================================

def _deep_merge(base: dict, override: dict) -> dict:
    """Return ``base`` updated with ``override``, section by section.

    Neither input is modified.
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _find_config_file() -> Path | None:
    """Return the first config file found, searching the locations above in order."""
    candidates = [
        Path('./tiergrid.yaml'),
        Path('./tiergrid.json'),
        Path.home() / '.config' / 'tiergrid' / 'config.yaml',
        Path.home() / '.config' / 'tiergrid' / 'config.json',
        Path.home() / '.tiergrid.yaml',
        Path.home() / '.tiergrid.json',
    ]

    for path in candidates:
        if path.exists():
            return path
    return None


def _load_config_file(path: Path) -> dict:
    """Load configuration from a YAML or JSON file."""
    with open(path, 'r', encoding='utf-8') as f:
        if path.suffix in ('.yaml', '.yml'):
            return yaml.safe_load(f) or {}
        return json.load(f)


def load_config(config_path: Path | str | None = None) -> dict:
    """Build the settings dict: DEFAULTS with the user file merged over them.

    Args:
        config_path: File to read instead of searching the usual
            locations. A missing or unreadable file is logged and the
            defaults are returned.
    """
    settings = copy.deepcopy(DEFAULTS)

    source = Path(config_path) if config_path else _find_config_file()
    if source is None:
        return settings
    if not source.exists():
        logger.warning("Config file not found: %s", source)
        return settings

    try:
        overrides = _load_config_file(source)
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        logger.warning("Failed to load config from %s: %s", source, e)
        return settings

    logger.info("Loaded config from %s", source)
    return _deep_merge(settings, overrides)


def save_default_config(path: Path | str):
    """Write DEFAULTS to ``path`` as YAML or JSON, chosen by suffix."""
    path = Path(path)

    with open(path, 'w', encoding='utf-8') as f:
        if path.suffix in ('.yaml', '.yml'):
            yaml.safe_dump(DEFAULTS, f, default_flow_style=False, sort_keys=False)
        else:
            json.dump(DEFAULTS, f, indent=2)


# =============================================================================
# GLOBAL CONFIG INSTANCE
# =============================================================================

# Read once at import; the CLI reloads it for --config
config = load_config()


def reload_config(config_path: Path | str | None = None):
    """Replace the module-level ``config``, e.g. after --config on the command line."""
    global config
    config = load_config(config_path)


def load_config_from_path(path: Path | str) -> dict:
    """Load one config file over the defaults.

    Unlike load_config, a missing or unreadable file is an error here.

    Raises:
        FileNotFoundError: If ``path`` does not exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    return _deep_merge(DEFAULTS, _load_config_file(path))
