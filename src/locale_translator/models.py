"""Data models for localization documents and translation runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Iterable, Iterator, List, Optional, Tuple

from .exceptions import DocumentError


class LocalizationDocument:
    """
    Ordered key -> text mapping loaded from a localization file.

    Keys starting with ``__`` are metadata and never go to a provider.
    Entries cannot be added or removed once loaded, only rewritten.
    """

    METADATA_PREFIX: ClassVar[str] = "__"
    LANGUAGE_KEY: ClassVar[str] = "__LANG"

    def __init__(self, entries: Optional[Dict[str, Any]] = None):
        self._entries: Dict[str, Any] = dict(entries or {})

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, Any]]) -> "LocalizationDocument":
        """Build a document from (key, value) pairs, rejecting duplicate keys."""
        entries: Dict[str, Any] = {}
        for key, value in pairs:
            if key in entries:
                raise DocumentError(f"Duplicate key: {key!r}")
            entries[key] = value
        return cls(entries)

    @classmethod
    def is_metadata(cls, key: str) -> bool:
        return key.startswith(cls.METADATA_PREFIX)

    def translatable_keys(self) -> List[str]:
        """Non-metadata keys in document order."""
        return [k for k in self._entries if not self.is_metadata(k)]

    def metadata(self) -> Dict[str, Any]:
        return {k: v for k, v in self._entries.items() if self.is_metadata(k)}

    def set_language(self, language: str) -> bool:
        """
        Rewrite ``__LANG`` to the upper-cased language code.

        Returns:
            True if the document carries a language key
        """
        if self.LANGUAGE_KEY not in self._entries:
            return False
        self._entries[self.LANGUAGE_KEY] = language.upper()
        return True

    def items(self):
        return self._entries.items()

    def keys(self) -> List[str]:
        return list(self._entries)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._entries)

    def copy(self) -> "LocalizationDocument":
        return LocalizationDocument(self._entries)

    def __getitem__(self, key: str) -> Any:
        return self._entries[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if key not in self._entries:
            raise KeyError(key)
        self._entries[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LocalizationDocument):
            return NotImplemented
        return list(self._entries.items()) == list(other._entries.items())

    def __repr__(self) -> str:
        return f"LocalizationDocument({len(self._entries)} entries)"


@dataclass(frozen=True)
class TranslationRequest:
    """One provider call for one document entry."""

    key: str
    original_text: str
    source_language: str
    target_language: str


class RunState(Enum):
    """Orchestrator run lifecycle."""
    IDLE = "idle"
    LOADING = "loading"
    TRANSLATING = "translating"
    SAVING = "saving"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_active(self) -> bool:
        return self in (RunState.LOADING, RunState.TRANSLATING, RunState.SAVING)


@dataclass(frozen=True)
class RunSummary:
    """Outcome of one orchestrator run."""

    total_entries: int
    translated_count: int
    cancelled: bool = False
    failed_keys: Tuple[str, ...] = ()
    state: RunState = RunState.COMPLETED

    @property
    def failed_count(self) -> int:
        return len(self.failed_keys)

    @property
    def completion_rate(self) -> float:
        """Processed fraction (0-1)."""
        if self.total_entries == 0:
            return 1.0
        return self.translated_count / self.total_entries


class ProviderKind(str, Enum):
    """Closed set of supported translation backends."""
    GOOGLE = "google"
    LIBRETRANSLATE = "libretranslate"
    MYMEMORY = "mymemory"

    @classmethod
    def parse(cls, name: str) -> "ProviderKind":
        try:
            return cls(name.strip().lower())
        except ValueError:
            choices = ", ".join(k.value for k in cls)
            raise ValueError(f"Unknown provider '{name}' (expected one of: {choices})") from None


@dataclass(frozen=True)
class ProviderSelection:
    """Selected provider plus the credentials only that variant needs."""

    kind: ProviderKind
    api_key: Optional[str] = field(default=None, repr=False)
    api_url: Optional[str] = None

    @property
    def requires_api_key(self) -> bool:
        return self.kind is ProviderKind.GOOGLE

    def validate(self) -> Optional[str]:
        """
        Validate the selection.

        Returns:
            Error message if invalid, None if valid
        """
        if self.requires_api_key and not (self.api_key or "").strip():
            return f"Provider '{self.kind.value}' requires an API key"
        return None
