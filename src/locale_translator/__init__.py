"""
Locale Translator - Translate JSON localization files through public translation APIs.

Features:
- Google Cloud Translation, LibreTranslate and MyMemory backends
- Metadata keys (``__`` prefix) preserved, ``__LANG`` updated
- Per-entry failure isolation with paced, sequential requests
- Cooperative cancellation with partial save
"""

__version__ = "1.0.0"

from .models import (
    LocalizationDocument,
    TranslationRequest,
    RunSummary,
    RunState,
    ProviderKind,
    ProviderSelection,
)
from .exceptions import (
    LocalizerError,
    TranslationError,
    ConnectivityError,
    ProviderTimeoutError,
    ProviderResponseError,
    DocumentError,
)
from .providers import (
    TranslationProvider,
    GoogleTranslateProvider,
    LibreTranslateProvider,
    MyMemoryProvider,
    create_provider,
)
from .orchestrator import CancellationToken, TranslationOrchestrator
from .document import parse_document, load_document, save_document, validate_document_file
from .text_utils import split_text, join_segments
from .config import TranslatorConfig
from .settings import AppSettings, load_settings, save_settings

__all__ = [
    # Models
    "LocalizationDocument",
    "TranslationRequest",
    "RunSummary",
    "RunState",
    "ProviderKind",
    "ProviderSelection",
    "TranslatorConfig",
    "AppSettings",
    # Errors
    "LocalizerError",
    "TranslationError",
    "ConnectivityError",
    "ProviderTimeoutError",
    "ProviderResponseError",
    "DocumentError",
    # Providers
    "TranslationProvider",
    "GoogleTranslateProvider",
    "LibreTranslateProvider",
    "MyMemoryProvider",
    "create_provider",
    # Orchestration
    "CancellationToken",
    "TranslationOrchestrator",
    # Documents
    "parse_document",
    "load_document",
    "save_document",
    "validate_document_file",
    # Chunking
    "split_text",
    "join_segments",
    # Settings
    "load_settings",
    "save_settings",
]
