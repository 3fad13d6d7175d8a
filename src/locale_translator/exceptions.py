"""
Exception classes for the localization translator.

Provider failures all derive from TranslationError so the orchestrator can
isolate them per entry. DocumentError is kept apart: it is raised by the
load/save collaborators and is fatal to a run.
"""

from __future__ import annotations

from typing import Optional


class LocalizerError(Exception):
    """Base class for all errors raised by this package."""


class TranslationError(LocalizerError):
    """A provider call failed; carries status and raw body where available."""

    def __init__(
        self,
        message: str,
        provider: str = "",
        status_code: Optional[int] = None,
        body: str = "",
    ):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
        self.body = body


class ConnectivityError(TranslationError):
    """Transport-level failure (DNS, refused connection, TLS)."""


class ProviderTimeoutError(TranslationError):
    """Provider call exceeded its deadline."""


class ProviderResponseError(TranslationError):
    """Non-success status, or payload without a translated string."""


class DocumentError(LocalizerError):
    """Localization document could not be loaded or saved."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path
