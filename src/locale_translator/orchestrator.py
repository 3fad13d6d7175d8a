"""
Translation run orchestration.

The orchestrator walks the translatable entries of a LocalizationDocument
one at a time, delegates each value to a TranslationProvider, paces the
requests and honours a cooperative CancellationToken. A failure on one
entry keeps its original value and never aborts the run.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .config import DEFAULT_PACING_DELAY
from .document import load_document, save_document
from .exceptions import DocumentError, TranslationError
from .models import LocalizationDocument, RunState, RunSummary, TranslationRequest
from .providers import TranslationProvider

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]
DocumentLoader = Callable[[Path], LocalizationDocument]
DocumentSaver = Callable[[LocalizationDocument, Path], None]


class CancellationToken:
    """
    Cooperative cancellation signal for a single run.

    ``cancel()`` may be called from any thread. The orchestrator polls the
    token before each entry and wakes up from its pacing delay as soon as
    the token fires. Once the run has finished the token is closed and
    further ``cancel()`` calls are no-ops.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._cancelled = False
        self._closed = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._event: Optional[asyncio.Event] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def closed(self) -> bool:
        return self._closed

    def cancel(self) -> bool:
        """
        Request cancellation.

        Returns:
            True if this call changed the token's state
        """
        with self._lock:
            if self._closed or self._cancelled:
                return False
            self._cancelled = True
            loop, event = self._loop, self._event

        if loop is not None and event is not None:
            try:
                running = asyncio.get_running_loop()
            except RuntimeError:
                running = None
            if running is loop:
                event.set()
            elif not loop.is_closed():
                loop.call_soon_threadsafe(event.set)
        return True

    async def sleep(self, delay: float) -> bool:
        """
        Wait for delay seconds, returning early if cancelled.

        Returns:
            True if the token is cancelled
        """
        if self._cancelled:
            return True
        if delay <= 0:
            return self._cancelled

        with self._lock:
            if self._event is None:
                self._loop = asyncio.get_running_loop()
                self._event = asyncio.Event()
            event = self._event
            if self._cancelled:
                event.set()

        try:
            await asyncio.wait_for(event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass
        return self._cancelled

    def close(self) -> None:
        """Mark the run as finished."""
        with self._lock:
            self._closed = True


class TranslationOrchestrator:
    """
    Drives one translation run at a time.

    State machine: IDLE -> LOADING -> TRANSLATING -> SAVING ->
    COMPLETED | CANCELLED | FAILED. ``run`` covers TRANSLATING only;
    ``run_file`` adds the load and save steps through collaborators.
    """

    def __init__(
        self,
        source_language: str = "en",
        pacing_delay: float = DEFAULT_PACING_DELAY,
    ):
        self.source_language = source_language
        self.pacing_delay = pacing_delay
        self.state = RunState.IDLE

    def _begin(self, token: CancellationToken, state: RunState) -> None:
        if self.state.is_active:
            raise RuntimeError(f"A run is already in progress ({self.state.value})")
        if token.closed:
            raise ValueError("Cancellation token belongs to a finished run")
        self.state = state

    async def run(
        self,
        document: LocalizationDocument,
        provider: TranslationProvider,
        target_language: str,
        cancel_token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Tuple[LocalizationDocument, RunSummary]:
        """
        Translate a document in place.

        Args:
            document: Loaded document; mutated entry by entry
            provider: Provider that already passed its connection test
            target_language: Target language code
            cancel_token: Cooperative cancellation signal
            on_progress: Called with (processed, total) after every entry

        Returns:
            The same document and the run summary
        """
        token = cancel_token or CancellationToken()
        self._begin(token, RunState.TRANSLATING)

        try:
            summary = await self._translate(
                document, provider, target_language, token, on_progress
            )
        except BaseException:
            self.state = RunState.FAILED
            raise
        finally:
            token.close()

        self.state = summary.state
        return document, summary

    async def run_file(
        self,
        source_path: Path,
        target_path: Path,
        provider: TranslationProvider,
        target_language: str,
        cancel_token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
        loader: DocumentLoader = load_document,
        saver: DocumentSaver = save_document,
    ) -> Tuple[LocalizationDocument, RunSummary]:
        """
        Load, translate and save a localization file.

        A cancelled run is still saved so partial progress is kept.

        Raises:
            DocumentError: loading or saving failed (the run ends FAILED)
        """
        token = cancel_token or CancellationToken()
        self._begin(token, RunState.LOADING)

        try:
            logger.info(f"Reading: {source_path}")
            document = loader(Path(source_path))

            self.state = RunState.TRANSLATING
            try:
                summary = await self._translate(
                    document, provider, target_language, token, on_progress
                )
            finally:
                token.close()

            self.state = RunState.SAVING
            saver(document, Path(target_path))
        except DocumentError as e:
            logger.error(f"Document error: {e}")
            self.state = RunState.FAILED
            raise
        except BaseException:
            self.state = RunState.FAILED
            raise
        finally:
            token.close()

        self.state = summary.state
        return document, summary

    async def _translate(
        self,
        document: LocalizationDocument,
        provider: TranslationProvider,
        target_language: str,
        token: CancellationToken,
        on_progress: Optional[ProgressCallback],
    ) -> RunSummary:
        # Fixed before the first request
        keys = document.translatable_keys()
        total = len(keys)
        processed = 0
        cancelled = False
        failed: List[str] = []

        logger.info(
            f"Translating {total} entries with {provider.name} "
            f"({self.source_language} -> {target_language})"
        )

        try:
            for position, key in enumerate(keys):
                if token.cancelled:
                    cancelled = True
                    break

                value = document[key]
                if not isinstance(value, str):
                    logger.warning(
                        f"Skipping '{key}': expected text, got {type(value).__name__}"
                    )
                    failed.append(key)
                elif value.strip():
                    request = TranslationRequest(
                        key=key,
                        original_text=value,
                        source_language=self.source_language,
                        target_language=target_language,
                    )
                    if not await self._translate_entry(document, provider, request):
                        failed.append(key)

                processed += 1
                if on_progress is not None:
                    on_progress(processed, total)

                # Pace only between entries
                if position + 1 < total and await token.sleep(self.pacing_delay):
                    cancelled = True
                    break
        finally:
            document.set_language(target_language)

        if cancelled:
            logger.info(f"Cancelled after {processed}/{total} entries")
        else:
            logger.info(f"Done! {processed - len(failed)}/{total} translated, {len(failed)} failed")

        return RunSummary(
            total_entries=total,
            translated_count=processed,
            cancelled=cancelled,
            failed_keys=tuple(failed),
            state=RunState.CANCELLED if cancelled else RunState.COMPLETED,
        )

    async def _translate_entry(
        self,
        document: LocalizationDocument,
        provider: TranslationProvider,
        request: TranslationRequest,
    ) -> bool:
        """Translate one entry; on failure keep the original value."""
        try:
            translated = await provider.translate(
                request.original_text,
                request.source_language,
                request.target_language,
            )
        except TranslationError as e:
            logger.warning(f"Translation failed for '{request.key}': {e}")
            return False
        except Exception as e:
            logger.error(f"Unexpected error translating '{request.key}': {e}", exc_info=True)
            return False

        document[request.key] = translated
        logger.debug(f"Translated '{request.key}'")
        return True
