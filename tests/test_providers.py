"""Tests for translation providers."""

import asyncio
import json
import logging

import httpx
import pytest

from locale_translator.exceptions import (
    ConnectivityError,
    ProviderResponseError,
    ProviderTimeoutError,
    TranslationError,
)
from locale_translator.http_client import RedactSecretsFilter
from locale_translator.models import ProviderKind, ProviderSelection
from locale_translator.providers import (
    GoogleTranslateProvider,
    LibreTranslateProvider,
    MyMemoryProvider,
    create_provider,
)


class Recorder:
    """MockTransport handler that records every request."""

    def __init__(self, responder):
        self.responder = responder
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)


def google_ok(request):
    return httpx.Response(200, json={"data": {"translations": [{"translatedText": "Привет"}]}})


def libre_ok(request):
    if request.url.path.endswith("/languages"):
        return httpx.Response(200, json=[{"code": "en"}, {"code": "ru"}])
    return httpx.Response(200, json={"translatedText": "Привет"})


def mymemory_echo(request):
    text = request.url.params["q"]
    return httpx.Response(200, json={
        "responseData": {"translatedText": text.upper()},
        "responseStatus": 200,
    })


def translate(provider, text, source="en", target="ru"):
    async def scenario():
        async with provider:
            return await provider.translate(text, source, target)
    return asyncio.run(scenario())


def check(provider):
    async def scenario():
        async with provider:
            return await provider.test_connection()
    return asyncio.run(scenario())


class TestRedactSecretsFilter:

    def test_key_parameter_masked(self):
        record = logging.LogRecord(
            "httpx", logging.INFO, __file__, 1, "HTTP Request: %s %s",
            ("POST", "https://example.com/v2?key=abc123&x=1"), None,
        )
        assert RedactSecretsFilter().filter(record) is True
        assert record.getMessage() == "HTTP Request: POST https://example.com/v2?key=***&x=1"

    def test_other_messages_untouched(self):
        record = logging.LogRecord(
            "httpx", logging.INFO, __file__, 1, "%s keys done", (3,), None,
        )
        RedactSecretsFilter().filter(record)
        assert record.args == (3,)
        assert record.getMessage() == "3 keys done"


class TestBlankInput:

    @pytest.mark.parametrize("factory", [
        lambda t: GoogleTranslateProvider("key", transport=t),
        lambda t: LibreTranslateProvider(transport=t),
        lambda t: MyMemoryProvider(transport=t),
    ])
    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_returned_unchanged_without_request(self, factory, text):
        recorder = Recorder(google_ok)
        provider = factory(httpx.MockTransport(recorder))
        assert translate(provider, text) == text
        assert recorder.requests == []


class TestGoogleTranslateProvider:

    def test_request_shape(self):
        recorder = Recorder(google_ok)
        provider = GoogleTranslateProvider("my-key", transport=httpx.MockTransport(recorder))

        assert translate(provider, "Hello", "EN", "RU") == "Привет"

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.host == "translation.googleapis.com"
        assert request.url.params["key"] == "my-key"
        assert json.loads(request.content) == {
            "q": "Hello", "source": "en", "target": "ru", "format": "text",
        }

    def test_missing_translations(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json={"data": {}}))
        provider = GoogleTranslateProvider("key", transport=transport)
        with pytest.raises(ProviderResponseError, match="no translated text"):
            translate(provider, "Hello")

    def test_error_status_includes_body(self):
        body = {"error": {"code": 403, "message": "API key not valid"}}
        recorder = Recorder(lambda r: httpx.Response(403, json=body))
        provider = GoogleTranslateProvider(
            "bad", transport=httpx.MockTransport(recorder), max_retries=3, backoff=0
        )

        with pytest.raises(ProviderResponseError) as exc_info:
            translate(provider, "Hello")

        assert exc_info.value.status_code == 403
        assert "403" in str(exc_info.value)
        assert "API key not valid" in str(exc_info.value)
        assert len(recorder.requests) == 1  # client errors are not retried

    def test_server_error_retried(self):
        responses = iter([httpx.Response(503, text="busy"), None])

        def responder(request):
            response = next(responses)
            return response if response is not None else google_ok(request)

        recorder = Recorder(responder)
        provider = GoogleTranslateProvider(
            "key", transport=httpx.MockTransport(recorder), max_retries=2, backoff=0
        )
        assert translate(provider, "Hello") == "Привет"
        assert len(recorder.requests) == 2

    def test_timeout(self):
        def responder(request):
            raise httpx.ReadTimeout("timed out", request=request)

        provider = GoogleTranslateProvider(
            "key", transport=httpx.MockTransport(responder), max_retries=1
        )
        with pytest.raises(ProviderTimeoutError):
            translate(provider, "Hello")

    def test_connection_error(self):
        def responder(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider = GoogleTranslateProvider(
            "key", transport=httpx.MockTransport(responder), max_retries=1
        )
        with pytest.raises(ConnectivityError):
            translate(provider, "Hello")

    def test_invalid_json(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(200, text="<html>oops</html>"))
        provider = GoogleTranslateProvider("key", transport=transport)
        with pytest.raises(ProviderResponseError, match="oops"):
            translate(provider, "Hello")

    def test_api_key_not_logged(self, caplog):
        recorder = Recorder(google_ok)
        provider = GoogleTranslateProvider("SECRET-KEY-123", transport=httpx.MockTransport(recorder))

        with caplog.at_level(logging.DEBUG):
            assert translate(provider, "Hello") == "Привет"

        assert recorder.requests[0].url.params["key"] == "SECRET-KEY-123"
        assert "SECRET-KEY-123" not in caplog.text

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            GoogleTranslateProvider("")


class TestLibreTranslateProvider:

    def test_request_shape(self):
        recorder = Recorder(libre_ok)
        provider = LibreTranslateProvider(
            api_url="http://localhost:5000/", transport=httpx.MockTransport(recorder)
        )

        assert translate(provider, "Hello", "en", "ZH") == "Привет"

        request = recorder.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "http://localhost:5000/translate"
        assert json.loads(request.content) == {
            "q": "Hello", "source": "en", "target": "zh", "format": "text", "api_key": "",
        }
        assert "Mozilla" in request.headers["user-agent"]

    def test_api_key_sent(self):
        recorder = Recorder(libre_ok)
        provider = LibreTranslateProvider(api_key="secret", transport=httpx.MockTransport(recorder))
        translate(provider, "Hello")
        assert json.loads(recorder.requests[0].content)["api_key"] == "secret"

    def test_empty_translation(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json={"translatedText": ""}))
        provider = LibreTranslateProvider(transport=transport)
        with pytest.raises(ProviderResponseError):
            translate(provider, "Hello")

    def test_check_languages(self):
        recorder = Recorder(libre_ok)
        provider = LibreTranslateProvider(transport=httpx.MockTransport(recorder))

        async def scenario():
            async with provider:
                return await provider.check_languages()

        assert asyncio.run(scenario()) is True
        assert recorder.requests[0].url.path == "/languages"

    def test_check_languages_unreachable(self):
        def responder(request):
            raise httpx.ConnectError("no route", request=request)

        provider = LibreTranslateProvider(transport=httpx.MockTransport(responder))

        async def scenario():
            async with provider:
                return await provider.check_languages()

        assert asyncio.run(scenario()) is False


class TestMyMemoryProvider:

    def test_request_shape(self):
        recorder = Recorder(mymemory_echo)
        provider = MyMemoryProvider(transport=httpx.MockTransport(recorder))

        assert translate(provider, "hello", "EN", "zh") == "HELLO"

        request = recorder.requests[0]
        assert request.method == "GET"
        assert request.url.params["q"] == "hello"
        assert request.url.params["langpair"] == "en|zh-CN"

    def test_email_parameter(self):
        recorder = Recorder(mymemory_echo)
        provider = MyMemoryProvider(email="me@example.com", transport=httpx.MockTransport(recorder))
        translate(provider, "hello")
        assert recorder.requests[0].url.params["de"] == "me@example.com"

    def test_long_text_is_chunked(self):
        recorder = Recorder(mymemory_echo)
        provider = MyMemoryProvider(transport=httpx.MockTransport(recorder))
        text = " ".join(["word"] * 250)  # 1249 characters

        result = translate(provider, text)

        assert len(recorder.requests) == 3
        assert all(len(r.url.params["q"]) <= 500 for r in recorder.requests)
        assert result.split() == ["WORD"] * 250

    def test_text_at_limit_not_chunked(self):
        recorder = Recorder(mymemory_echo)
        provider = MyMemoryProvider(transport=httpx.MockTransport(recorder))
        translate(provider, "a" * 500)
        assert len(recorder.requests) == 1

    def test_in_body_error_status(self):
        payload = {
            "responseData": {"translatedText": "MYMEMORY WARNING: YOU USED ALL AVAILABLE FREE TRANSLATIONS"},
            "responseStatus": 429,
            "responseDetails": "quota exceeded",
        }
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json=payload))
        provider = MyMemoryProvider(transport=transport)

        with pytest.raises(ProviderResponseError) as exc_info:
            translate(provider, "hello")
        assert exc_info.value.status_code == 429
        assert "quota exceeded" in str(exc_info.value)

    def test_missing_response_data(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json={"responseStatus": 200}))
        provider = MyMemoryProvider(transport=transport)
        with pytest.raises(TranslationError):
            translate(provider, "hello")


class TestConnectionCheck:

    def test_success_uses_probe(self):
        recorder = Recorder(libre_ok)
        provider = LibreTranslateProvider(transport=httpx.MockTransport(recorder))

        assert check(provider) is True

        body = json.loads(recorder.requests[0].content)
        assert (body["q"], body["source"], body["target"]) == ("Hello", "en", "ru")

    def test_error_status_is_false(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(401, text="unauthorized"))
        provider = GoogleTranslateProvider("key", transport=transport)
        assert check(provider) is False

    def test_transport_failure_is_false(self):
        def responder(request):
            raise httpx.ConnectError("dns failure", request=request)

        provider = MyMemoryProvider(transport=httpx.MockTransport(responder), max_retries=1)
        assert check(provider) is False


class TestCreateProvider:

    def test_google(self):
        provider = create_provider(ProviderSelection(ProviderKind.GOOGLE, api_key="k"))
        assert isinstance(provider, GoogleTranslateProvider)
        asyncio.run(provider.aclose())

    def test_libretranslate_url(self):
        provider = create_provider(
            ProviderSelection(ProviderKind.LIBRETRANSLATE, api_url="http://lt.local")
        )
        assert isinstance(provider, LibreTranslateProvider)
        assert provider.api_url == "http://lt.local"
        asyncio.run(provider.aclose())

    def test_mymemory(self):
        provider = create_provider(ProviderSelection(ProviderKind.MYMEMORY), max_retries=1)
        assert isinstance(provider, MyMemoryProvider)
        assert provider.max_retries == 1
        asyncio.run(provider.aclose())

    def test_google_without_key(self):
        with pytest.raises(ValueError, match="API key"):
            create_provider(ProviderSelection(ProviderKind.GOOGLE))
