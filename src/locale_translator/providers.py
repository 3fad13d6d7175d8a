"""
Translation provider implementations.

Three interchangeable backends share the TranslationProvider contract:
- Google Cloud Translation (keyed, JSON POST)
- LibreTranslate (self-hosted or public instance, JSON POST)
- MyMemory (public GET API limited to 500 characters per request)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, List, Optional

import httpx

from .config import (
    GOOGLE_TRANSLATE_URL,
    GOOGLE_TIMEOUT,
    DEFAULT_LIBRETRANSLATE_URL,
    LIBRETRANSLATE_TIMEOUT,
    MYMEMORY_URL,
    MYMEMORY_TIMEOUT,
    MYMEMORY_MAX_CHARS,
    DEFAULT_MAX_RETRIES,
    PROBE_TEXT,
    PROBE_SOURCE_LANGUAGE,
    PROBE_TARGET_LANGUAGE,
)
from .exceptions import ProviderResponseError
from .http_client import create_client, send_request, parse_json, BODY_SNIPPET_CHARS
from .models import ProviderKind, ProviderSelection
from .text_utils import split_text, join_segments, normalize_language_code, truncate_text

logger = logging.getLogger(__name__)


class TranslationProvider(ABC):
    """
    Base class for translation backends.

    Each instance owns one pooled HTTP client that is reused across calls
    and runs. Instances are meant for sequential use, not concurrent calls.
    """

    name: ClassVar[str] = "provider"
    # Applied after lower-casing language codes
    LANGUAGE_OVERRIDES: ClassVar[Dict[str, str]] = {}

    def __init__(
        self,
        timeout: float,
        headers: Optional[Dict[str, str]] = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff = backoff
        self._client = create_client(timeout, headers=headers, transport=transport)

    def map_language_code(self, code: str) -> str:
        return normalize_language_code(code, self.LANGUAGE_OVERRIDES)

    async def translate(self, text: str, source_language: str, target_language: str) -> str:
        """
        Translate text from source_language to target_language.

        Blank input is returned unchanged without a network call.

        Raises:
            TranslationError: transport failure, timeout, error status or a
                payload without translated text
        """
        if not text or not text.strip():
            return text

        return await self._translate(
            text,
            self.map_language_code(source_language),
            self.map_language_code(target_language),
        )

    @abstractmethod
    async def _translate(self, text: str, source: str, target: str) -> str:
        """Translate non-blank text with already-mapped language codes."""

    async def test_connection(self) -> bool:
        """
        Translate a fixed probe string to check the provider is usable.

        Never raises; any failure is reported as False.
        """
        try:
            translated = await self.translate(
                PROBE_TEXT, PROBE_SOURCE_LANGUAGE, PROBE_TARGET_LANGUAGE
            )
        except Exception as e:
            logger.warning(f"{self.name} connection test failed: {e}")
            return False

        ok = bool(translated and translated.strip())
        if ok:
            logger.info(f"{self.name} connection test passed")
        else:
            logger.warning(f"{self.name} connection test returned empty text")
        return ok

    async def _request(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        response = await send_request(
            self._client,
            method,
            url,
            provider=self.name,
            max_retries=self.max_retries,
            backoff=self.backoff,
            **kwargs,
        )
        return parse_json(response, self.name)

    def _missing_text(self, data: Dict[str, Any]) -> ProviderResponseError:
        body = truncate_text(str(data), BODY_SNIPPET_CHARS)
        return ProviderResponseError(
            f"{self.name} response has no translated text: {body}",
            provider=self.name,
            body=body,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "TranslationProvider":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


class GoogleTranslateProvider(TranslationProvider):
    """Google Cloud Translation v2; the API key travels as a query parameter."""

    name = "Google Translate"

    def __init__(
        self,
        api_key: str,
        api_url: str = GOOGLE_TRANSLATE_URL,
        timeout: float = GOOGLE_TIMEOUT,
        **kwargs: Any,
    ):
        if not api_key:
            raise ValueError("Google Translate requires an API key")
        super().__init__(timeout, **kwargs)
        self._api_key = api_key
        self.api_url = api_url

    async def _translate(self, text: str, source: str, target: str) -> str:
        body = {
            "q": text,
            "source": source,
            "target": target,
            "format": "text",
        }
        data = await self._request(
            "POST", self.api_url, params={"key": self._api_key}, json=body
        )

        payload = data.get("data")
        translations = payload.get("translations") if isinstance(payload, dict) else None
        if isinstance(translations, list) and translations and isinstance(translations[0], dict):
            translated = translations[0].get("translatedText")
            if isinstance(translated, str) and translated:
                return translated

        raise self._missing_text(data)


class LibreTranslateProvider(TranslationProvider):
    """LibreTranslate instance, public or self-hosted."""

    name = "LibreTranslate"

    # Public instances block clients that do not look like a browser
    DEFAULT_HEADERS: ClassVar[Dict[str, str]] = {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0 Safari/537.36"
        ),
        "Accept": "application/json",
        "Accept-Language": "en-US,en;q=0.9",
    }

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = LIBRETRANSLATE_TIMEOUT,
        **kwargs: Any,
    ):
        kwargs.setdefault("headers", dict(self.DEFAULT_HEADERS))
        super().__init__(timeout, **kwargs)
        self.api_url = (api_url or DEFAULT_LIBRETRANSLATE_URL).rstrip("/")
        self._api_key = api_key or ""

    async def _translate(self, text: str, source: str, target: str) -> str:
        body = {
            "q": text,
            "source": source,
            "target": target,
            "format": "text",
            "api_key": self._api_key,
        }
        data = await self._request("POST", f"{self.api_url}/translate", json=body)

        translated = data.get("translatedText")
        if isinstance(translated, str) and translated:
            return translated

        raise self._missing_text(data)

    async def check_languages(self) -> bool:
        """Probe ``GET /languages``; True when the instance answers. Never raises."""
        try:
            response = await self._client.get(f"{self.api_url}/languages")
        except httpx.HTTPError as e:
            logger.warning(f"{self.name} languages probe failed: {e}")
            return False
        if not response.is_success:
            logger.warning(f"{self.name} languages probe returned {response.status_code}")
            return False
        return True


class MyMemoryProvider(TranslationProvider):
    """MyMemory public API; long text is split into 500-character segments."""

    name = "MyMemory"
    LANGUAGE_OVERRIDES = {"zh": "zh-CN"}

    def __init__(
        self,
        email: Optional[str] = None,
        api_url: str = MYMEMORY_URL,
        timeout: float = MYMEMORY_TIMEOUT,
        max_chars: int = MYMEMORY_MAX_CHARS,
        **kwargs: Any,
    ):
        super().__init__(timeout, **kwargs)
        self.email = email
        self.api_url = api_url
        self.max_chars = max_chars

    async def _translate(self, text: str, source: str, target: str) -> str:
        if len(text) <= self.max_chars:
            return await self._translate_segment(text, source, target)

        segments = split_text(text, self.max_chars)
        logger.debug(f"{self.name}: split {len(text)} chars into {len(segments)} segments")

        translated: List[str] = []
        for segment in segments:
            translated.append(await self._translate_segment(segment, source, target))
        return join_segments(translated)

    async def _translate_segment(self, text: str, source: str, target: str) -> str:
        params = {"q": text, "langpair": f"{source}|{target}"}
        if self.email:
            params["de"] = self.email

        data = await self._request("GET", self.api_url, params=params)

        # Quota and validation errors arrive with HTTP 200
        status = data.get("responseStatus")
        if status is not None and str(status) != "200":
            details = data.get("responseDetails") or ""
            raise ProviderResponseError(
                f"{self.name} API returned error: {status} - {details}",
                provider=self.name,
                status_code=int(status) if str(status).isdigit() else None,
                body=truncate_text(str(details), BODY_SNIPPET_CHARS),
            )

        payload = data.get("responseData")
        translated = payload.get("translatedText") if isinstance(payload, dict) else None
        if isinstance(translated, str) and translated:
            return translated

        raise self._missing_text(data)


def create_provider(selection: ProviderSelection, **kwargs: Any) -> TranslationProvider:
    """
    Instantiate the provider described by a selection.

    Args:
        selection: Provider kind plus its credentials
        **kwargs: Passed to the provider (max_retries, transport, ...)

    Returns:
        Ready-to-use provider
    """
    error = selection.validate()
    if error:
        raise ValueError(error)

    if selection.kind is ProviderKind.GOOGLE:
        return GoogleTranslateProvider(selection.api_key, **kwargs)
    if selection.kind is ProviderKind.LIBRETRANSLATE:
        return LibreTranslateProvider(
            api_url=selection.api_url, api_key=selection.api_key, **kwargs
        )
    return MyMemoryProvider(**kwargs)
