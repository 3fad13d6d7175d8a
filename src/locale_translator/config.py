"""Configuration and constants."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from dotenv import load_dotenv

from .models import ProviderKind, ProviderSelection

if TYPE_CHECKING:
    from .settings import AppSettings

# Load environment variables once
load_dotenv()

# Provider endpoints
GOOGLE_TRANSLATE_URL = "https://translation.googleapis.com/language/translate/v2"
DEFAULT_LIBRETRANSLATE_URL = "https://libretranslate.com"
MYMEMORY_URL = "https://api.mymemory.translated.net/get"

# Per-request timeouts (seconds)
GOOGLE_TIMEOUT = 300.0
LIBRETRANSLATE_TIMEOUT = 300.0
MYMEMORY_TIMEOUT = 30.0

# MyMemory rejects requests above this many characters
MYMEMORY_MAX_CHARS = 500

# Connection probe
PROBE_TEXT = "Hello"
PROBE_SOURCE_LANGUAGE = "en"
PROBE_TARGET_LANGUAGE = "ru"

# Run pacing between entries (seconds)
DEFAULT_PACING_DELAY = 0.1

DEFAULT_MAX_RETRIES = 2

# Environment variables
API_KEY_ENV = "GOOGLE_TRANSLATE_API_KEY"
API_URL_ENV = "LIBRETRANSLATE_URL"
LIBRETRANSLATE_API_KEY_ENV = "LIBRETRANSLATE_API_KEY"

SUPPORTED_LANGUAGES = {
    "en": "English",
    "ru": "Russian",
    "uk": "Ukrainian",
    "pl": "Polish",
    "cs": "Czech",
    "de": "German",
    "fr": "French",
    "es": "Spanish",
    "it": "Italian",
    "pt": "Portuguese",
    "tr": "Turkish",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
}

# Supported file extensions
SUPPORTED_EXTENSIONS = {".json"}


@dataclass
class TranslatorConfig:
    """Configuration for a localization translation run."""

    # Provider settings
    provider: str = ProviderKind.LIBRETRANSLATE.value
    api_key: Optional[str] = None
    api_url: Optional[str] = None

    # Languages
    source_language: str = "en"
    target_language: str = "ru"

    # Processing settings
    pacing_delay: float = DEFAULT_PACING_DELAY
    max_retries: int = DEFAULT_MAX_RETRIES

    # Output settings
    output_prefix: str = "translated_"

    def __post_init__(self):
        """Load credentials from environment if not provided."""
        if self.api_key is None:
            if self.provider.strip().lower() == ProviderKind.LIBRETRANSLATE.value:
                self.api_key = os.environ.get(LIBRETRANSLATE_API_KEY_ENV)
            else:
                self.api_key = os.environ.get(API_KEY_ENV)
        if self.api_url is None:
            self.api_url = os.environ.get(API_URL_ENV)

    @classmethod
    def from_args(cls, args, settings: Optional["AppSettings"] = None) -> "TranslatorConfig":
        """
        Create config from argparse namespace.

        Explicit arguments win over persisted settings, which win over defaults.
        """
        provider = getattr(args, 'provider', None)
        target_language = getattr(args, 'target_language', None)
        if settings is not None:
            provider = provider or settings.provider
            target_language = target_language or settings.target_language

        return cls(
            provider=provider or ProviderKind.LIBRETRANSLATE.value,
            api_key=getattr(args, 'api_key', None) or None,
            api_url=getattr(args, 'api_url', None) or None,
            source_language=getattr(args, 'source_language', None) or "en",
            target_language=target_language or "ru",
            pacing_delay=getattr(args, 'pacing_delay', DEFAULT_PACING_DELAY),
            max_retries=getattr(args, 'max_retries', DEFAULT_MAX_RETRIES),
        )

    def validate(self) -> Optional[str]:
        """
        Validate configuration.

        Returns:
            Error message if invalid, None if valid
        """
        try:
            selection = self.to_selection()
        except ValueError as e:
            return str(e)

        error = selection.validate()
        if error:
            return f"{error}. Set {API_KEY_ENV} or use --api-key"

        if self.target_language.lower() not in SUPPORTED_LANGUAGES:
            return f"Unsupported target language: {self.target_language}"

        if self.pacing_delay < 0:
            return f"Pacing delay must be >= 0, got {self.pacing_delay}"

        if self.max_retries < 1 or self.max_retries > 10:
            return f"Retries must be 1-10, got {self.max_retries}"

        return None

    def to_selection(self) -> ProviderSelection:
        """Build the provider selection handed to the provider factory."""
        kind = ProviderKind.parse(self.provider)
        return ProviderSelection(
            kind=kind,
            api_key=None if kind is ProviderKind.MYMEMORY else self.api_key,
            api_url=self.api_url if kind is ProviderKind.LIBRETRANSLATE else None,
        )
