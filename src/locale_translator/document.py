"""Localization JSON loading and saving utilities."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from .config import SUPPORTED_EXTENSIONS
from .exceptions import DocumentError
from .models import LocalizationDocument

logger = logging.getLogger(__name__)

# Largest file accepted by validate_document_file
MAX_FILE_SIZE = 50 * 1024 * 1024


class _Pairs(list):
    """Key/value pairs of one JSON object, in file order."""


def parse_document(content: str) -> LocalizationDocument:
    """
    Parse localization JSON into a LocalizationDocument.

    The root must be a flat object. Metadata values (``__`` keys) may be any
    JSON value and are kept verbatim; every other value must be a string.

    Args:
        content: Raw file content

    Returns:
        Parsed document, keys in file order

    Raises:
        DocumentError: invalid JSON, non-object root, duplicate keys or
            non-string translatable values
    """
    if not content or not content.strip():
        raise DocumentError("Document is empty")

    try:
        root = json.loads(content, object_pairs_hook=_Pairs)
    except json.JSONDecodeError as e:
        raise DocumentError(f"Invalid JSON: {e}") from e

    if not isinstance(root, _Pairs):
        raise DocumentError(
            f"Expected a JSON object at the root, got {type(root).__name__}"
        )

    document = LocalizationDocument.from_pairs(
        (key, _restore_objects(value)) for key, value in root
    )

    for key, value in document.items():
        if LocalizationDocument.is_metadata(key):
            continue
        if not isinstance(value, str):
            raise DocumentError(
                f"Value of '{key}' must be a string, got {type(value).__name__}"
            )

    return document


def _restore_objects(value):
    """Turn nested pair lists back into dicts."""
    if isinstance(value, _Pairs):
        return {k: _restore_objects(v) for k, v in value}
    if isinstance(value, list):
        return [_restore_objects(item) for item in value]
    return value


def validate_document_file(path: Path) -> Optional[str]:
    """
    Validate a localization file before processing.

    Args:
        path: Path to the JSON file

    Returns:
        Error message if invalid, None if valid
    """
    if not path.exists():
        return f"File not found: {path}"

    if not path.is_file():
        return f"Not a file: {path}"

    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        return f"Invalid file extension: {suffix} (expected .json)"

    # 检查文件大小
    size = path.stat().st_size
    if size == 0:
        return "File is empty"
    if size > MAX_FILE_SIZE:
        return f"File too large: {size / 1024 / 1024:.1f}MB (max 50MB)"

    return None


def load_document(path: Path) -> LocalizationDocument:
    """
    Load a localization file.

    Raises:
        DocumentError: file unreadable or not a valid localization document
    """
    try:
        content = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentError(f"Cannot read {path}: {e}", path=str(path)) from e

    try:
        document = parse_document(content)
    except DocumentError as e:
        raise DocumentError(f"{path}: {e}", path=str(path)) from e

    logger.info(f"Loaded {len(document)} entries from {path}")
    return document


def save_document(document: LocalizationDocument, path: Path) -> None:
    """
    Save a document as indented UTF-8 JSON, preserving key order.

    Raises:
        DocumentError: file could not be written
    """
    try:
        content = json.dumps(document.to_dict(), ensure_ascii=False, indent=2)
    except (TypeError, ValueError) as e:
        raise DocumentError(f"Cannot serialize document: {e}", path=str(path)) from e

    try:
        # 确保父目录存在
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            f.write(content)
            f.write("\n")
    except OSError as e:
        raise DocumentError(f"Cannot write {path}: {e}", path=str(path)) from e

    logger.info(f"Saved {len(document)} entries to {path}")
