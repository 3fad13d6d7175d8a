"""HTTP transport utilities shared by the translation providers."""

from __future__ import annotations

import asyncio
import logging
import re
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from .exceptions import (
    TranslationError,
    ConnectivityError,
    ProviderTimeoutError,
    ProviderResponseError,
)
from .text_utils import truncate_text

logger = logging.getLogger(__name__)

# Longest raw body excerpt kept on an error
BODY_SNIPPET_CHARS = 300

# Credentials carried in query strings, e.g. Google's ?key=...
_SECRET_PARAM = re.compile(r"([?&](?:key|api_key)=)[^&\s\"]+", re.IGNORECASE)


class RedactSecretsFilter(logging.Filter):
    """Mask credential query parameters in log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _SECRET_PARAM.sub(r"\1***", message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


# httpx logs every request URL at INFO
logging.getLogger("httpx").addFilter(RedactSecretsFilter())


class HttpErrorType(Enum):
    """HTTP 错误类型分类。"""
    RATE_LIMIT = "rate_limit"      # 429 - 可重试
    CONNECTION = "connection"       # 网络问题 - 可重试
    TIMEOUT = "timeout"             # 超时 - 可重试
    SERVER = "server"               # 500+ - 可重试
    CLIENT = "client"               # 4xx - 不可重试
    PAYLOAD = "payload"             # 响应格式错误 - 不可重试


def classify_error(error: TranslationError) -> tuple[HttpErrorType, bool]:
    """
    分类请求错误并判断是否可重试。

    Returns:
        (错误类型, 是否可重试)
    """
    if isinstance(error, ProviderTimeoutError):
        return HttpErrorType.TIMEOUT, True
    elif isinstance(error, ConnectivityError):
        return HttpErrorType.CONNECTION, True
    elif error.status_code == 429:
        return HttpErrorType.RATE_LIMIT, True
    elif error.status_code is not None and error.status_code >= 500:
        return HttpErrorType.SERVER, True
    elif error.status_code is not None and error.status_code >= 400:
        return HttpErrorType.CLIENT, False
    else:
        return HttpErrorType.PAYLOAD, False


def status_error(response: httpx.Response, provider: str) -> ProviderResponseError:
    """Build an error for a non-success response, keeping the raw body."""
    body = truncate_text(response.text, BODY_SNIPPET_CHARS)
    return ProviderResponseError(
        f"{provider} API returned error: {response.status_code} - {body}",
        provider=provider,
        status_code=response.status_code,
        body=body,
    )


def parse_json(response: httpx.Response, provider: str) -> Dict[str, Any]:
    """Decode a JSON object body or raise ProviderResponseError."""
    try:
        data = response.json()
    except ValueError as e:
        body = truncate_text(response.text, BODY_SNIPPET_CHARS)
        raise ProviderResponseError(
            f"{provider} returned invalid JSON: {e} - {body}",
            provider=provider,
            status_code=response.status_code,
            body=body,
        ) from e

    if not isinstance(data, dict):
        body = truncate_text(response.text, BODY_SNIPPET_CHARS)
        raise ProviderResponseError(
            f"{provider} returned unexpected payload: {body}",
            provider=provider,
            status_code=response.status_code,
            body=body,
        )
    return data


async def send_request(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    provider: str,
    max_retries: int = 1,
    backoff: float = 1.0,
    **kwargs: Any,
) -> httpx.Response:
    """
    Send an HTTP request with retry logic.

    Args:
        client: Shared AsyncClient of the calling provider
        method: HTTP method
        url: Request URL
        provider: Provider name used in error messages
        max_retries: Maximum attempts (1 means no retry)
        backoff: Base delay for exponential backoff in seconds
        **kwargs: Passed through to ``client.request``

    Returns:
        Successful response

    Raises:
        TranslationError: Last error once attempts are exhausted or the
            error is not retryable
    """
    last_error: Optional[TranslationError] = None

    for attempt in range(max(1, max_retries)):
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            last_error = ProviderTimeoutError(
                f"{provider} request timeout: {e}", provider=provider
            )
            last_error.__cause__ = e
        except httpx.TransportError as e:
            last_error = ConnectivityError(
                f"{provider} HTTP error: {e}", provider=provider
            )
            last_error.__cause__ = e
        else:
            if response.is_success:
                return response
            last_error = status_error(response, provider)

        error_type, retryable = classify_error(last_error)
        if not retryable or attempt + 1 >= max_retries:
            break

        # 计算退避时间
        if error_type == HttpErrorType.RATE_LIMIT:
            delay = backoff * 2 ** (attempt + 1)
        else:
            delay = backoff * 2 ** attempt

        logger.warning(
            f"Retryable error ({error_type.value}): {last_error}. "
            f"Retry {attempt + 1}/{max_retries - 1} in {delay:.1f}s..."
        )
        await asyncio.sleep(delay)

    raise last_error


def create_client(
    timeout: float,
    headers: Optional[Dict[str, str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Create a pooled AsyncClient for one provider instance.

    Args:
        timeout: Per-request timeout in seconds
        headers: Default headers sent with every request
        transport: Optional transport override (e.g. ``httpx.MockTransport``)

    Returns:
        Configured AsyncClient
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout, connect=min(timeout, 10.0)),
        headers=headers,
        transport=transport,
        follow_redirects=True,
    )
