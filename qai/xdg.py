"""XDG Base Directory Specification helpers.

This module provides XDG-compliant directory management used by:
- config (qai.yml and the prompt override)
- history store (history.jsonl, patterns.json)
- tool cache (tools.json)
- logging (qai.log)

All functions take an app_name parameter so tests and sibling tools can
resolve their own directories with the same rules.
"""
import os
from pathlib import Path

APP_NAME = "qai"


def _xdg_base(env_var: str, fallback: str) -> Path:
    value = os.environ.get(env_var)
    if value:
        return Path(value)
    return Path.home() / fallback


def get_config_dir(app_name: str = APP_NAME) -> Path:
    """Get application config directory following XDG Base Directory rules.

    Args:
        app_name: Application name (e.g., "qai")

    Returns:
        Path to XDG_CONFIG_HOME/app_name or ~/.config/app_name
    """
    return _xdg_base('XDG_CONFIG_HOME', '.config') / app_name


def get_data_dir(app_name: str = APP_NAME) -> Path:
    """Get application data directory following XDG Base Directory rules.

    Args:
        app_name: Application name (e.g., "qai")

    Returns:
        Path to XDG_DATA_HOME/app_name or ~/.local/share/app_name
    """
    return _xdg_base('XDG_DATA_HOME', '.local/share') / app_name


def get_cache_dir(app_name: str = APP_NAME) -> Path:
    """Get application cache directory following XDG Base Directory rules.

    Returns:
        Path to XDG_CACHE_HOME/app_name or ~/.cache/app_name
    """
    return _xdg_base('XDG_CACHE_HOME', '.cache') / app_name


def default_history_dir() -> Path:
    """Get the default directory of the learning store.

    Returns:
        Path to XDG_DATA_HOME/qai/history

    The store never resolves this on its own; callers pass the directory
    into HistoryStore explicitly.
    """
    return get_data_dir(APP_NAME) / 'history'
