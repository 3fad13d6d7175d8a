"""Persisted user settings (last used files, language and provider)."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

SETTINGS_ENV = "LOCALE_TRANSLATOR_SETTINGS"


@dataclass
class AppSettings:
    """上次使用的设置。API 密钥不会被保存。"""

    source_file: Optional[str] = None
    target_file: Optional[str] = None
    target_language: Optional[str] = None
    provider: Optional[str] = None


def get_settings_path() -> Path:
    """获取设置文件路径。"""
    override = os.environ.get(SETTINGS_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "locale_translator" / "settings.json"


def load_settings(path: Optional[Path] = None) -> AppSettings:
    """
    从文件加载设置。

    Returns:
        Stored settings, or defaults if the file is missing or unreadable
    """
    path = path or get_settings_path()
    if not path.exists():
        logger.debug(f"Settings file not found at: {path}")
        return AppSettings()

    try:
        with path.open('r', encoding='utf-8') as f:
            data = json.load(f)

        # 忽略未知字段
        known = {f.name for f in fields(AppSettings)}
        settings = AppSettings(**{k: v for k, v in data.items() if k in known})
        logger.debug(f"Settings loaded from {path}")
        return settings
    except (OSError, ValueError, AttributeError, TypeError) as e:
        logger.warning(f"Failed to load settings file: {e}")
        return AppSettings()


def save_settings(settings: AppSettings, path: Optional[Path] = None) -> bool:
    """
    保存设置到文件。

    Returns:
        True if successful
    """
    path = path or get_settings_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open('w', encoding='utf-8') as f:
            json.dump(asdict(settings), f, ensure_ascii=False, indent=2)

        logger.debug(f"Settings saved to {path}")
        return True
    except OSError as e:
        logger.error(f"Failed to save settings: {e}")
        return False
