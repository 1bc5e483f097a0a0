"""Dataset file handling: upload storage, row estimates and previews."""
from __future__ import annotations

import io
import json
import logging
import os
import re
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiofiles
import pandas as pd

from ...config import (
    ALLOWED_DATASET_EXTENSIONS,
    MAX_UPLOAD_BYTES,
    PREVIEW_MAX_COLS,
    PREVIEW_MAX_ROWS,
    PREVIEW_SCAN_BYTES,
    ROW_SCAN_LIMIT_BYTES,
    UPLOAD_CHUNK_BYTES,
)
from ..errors import UnsupportedFileTypeError, UploadTooLargeError

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^\w.\-]+")


def secure_filename(name: str) -> str:
    """Sanitize an uploaded filename for safe storage."""
    base = os.path.basename(name or "file")
    base = _UNSAFE_CHARS.sub("_", base)
    if not base or base in (".", ".."):
        base = "file"
    return base[:200]


def stored_filename(original: str) -> str:
    """``<epoch_ms>_<sanitised name>`` so repeated uploads never collide."""
    return f"{int(time.time() * 1000)}_{secure_filename(original)}"


def check_extension(name: str) -> None:
    suffix = Path(name or "").suffix.lower()
    if suffix not in ALLOWED_DATASET_EXTENSIONS:
        raise UnsupportedFileTypeError(
            f"Unsupported dataset type {suffix or '(none)'!r}; "
            f"expected one of {', '.join(ALLOWED_DATASET_EXTENSIONS)}"
        )


async def save_upload(
    file,  # UploadFile
    dest: Path,
    max_size: int = MAX_UPLOAD_BYTES,
    chunk_size: int = UPLOAD_CHUNK_BYTES,
) -> int:
    """Stream an upload to *dest* and return the number of bytes written.

    Raises
    ------
    UploadTooLargeError
        If the file exceeds ``max_size``; the partial file is removed.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    bytes_written = 0

    async with aiofiles.open(dest, "wb") as out:
        while True:
            chunk = await file.read(chunk_size)
            if not chunk:
                break
            bytes_written += len(chunk)
            if bytes_written > max_size:
                await out.close()
                dest.unlink(missing_ok=True)
                raise UploadTooLargeError(f"File exceeds {max_size} bytes")
            await out.write(chunk)

    return bytes_written


def estimate_rows(path: Path, limit: int = ROW_SCAN_LIMIT_BYTES, chunk_size: int = UPLOAD_CHUNK_BYTES) -> Optional[int]:
    """Estimate data rows as ``newlines - 1`` over at most *limit* bytes.

    Returns ``None`` if the file cannot be read.
    """
    newlines = 0
    total_read = 0
    try:
        with open(path, "rb") as fh:
            while total_read < limit:
                chunk = fh.read(min(chunk_size, limit - total_read))
                if not chunk:
                    break
                total_read += len(chunk)
                newlines += chunk.count(b"\n")
    except OSError as exc:
        logger.warning("Row estimate failed for %s: %s", path, exc)
        return None
    return max(newlines - 1, 0)


# ── Preview ──────────────────────────────────────────────────────────


def _empty_preview(fmt: str) -> Dict[str, Any]:
    return {"format": fmt, "columns": [], "rows": []}


def _frame_rows(df: pd.DataFrame) -> List[List[Any]]:
    return df.astype(object).where(df.notna(), None).values.tolist()


def _preview_json(text: str) -> Dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return _empty_preview("json")
    if not isinstance(data, list) or not data:
        return _empty_preview("json")

    body_limit = PREVIEW_MAX_ROWS - 1
    first = data[0]
    if isinstance(first, list):
        rows = [list(r)[:PREVIEW_MAX_COLS] if isinstance(r, list) else [r] for r in data[:PREVIEW_MAX_ROWS]]
        return {"format": "json", "columns": [str(c) for c in rows[0]], "rows": rows[1:]}
    if isinstance(first, dict):
        columns = list(first.keys())[:PREVIEW_MAX_COLS]
        records = [r for r in data[:body_limit] if isinstance(r, dict)]
        df = pd.DataFrame(records, columns=columns)
        return {"format": "json", "columns": [str(c) for c in columns], "rows": _frame_rows(df)}
    df = pd.DataFrame({"value": [str(v) for v in data[:body_limit]]})
    return {"format": "json", "columns": ["value"], "rows": _frame_rows(df)}


def _preview_delimited(text: str, sep: str, fmt: str) -> Dict[str, Any]:
    try:
        df = pd.read_csv(
            io.StringIO(text),
            sep=sep,
            header=None,
            dtype=str,
            keep_default_na=False,
            nrows=PREVIEW_MAX_ROWS,
            engine="python",
            on_bad_lines="skip",
            skip_blank_lines=True,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as exc:
        logger.debug("Delimited preview failed: %s", exc)
        return _empty_preview(fmt)
    if df.empty:
        return _empty_preview(fmt)
    df = df.iloc[:, :PREVIEW_MAX_COLS].fillna("")
    header = [str(c) for c in df.iloc[0].tolist()]
    return {"format": fmt, "columns": header, "rows": _frame_rows(df.iloc[1:])}


def build_preview(path: Path, original_name: str, scan_bytes: int = PREVIEW_SCAN_BYTES) -> Dict[str, Any]:
    """Header plus up to 24 rows (30 columns max) from the start of a dataset.

    JSON is detected by a ``.json`` name or a leading ``[``/``{``; ``.tsv``
    is tab-delimited; anything else is read as CSV.  Content that cannot
    be parsed yields an empty preview rather than an error.
    """
    with open(path, "rb") as fh:
        text = fh.read(scan_bytes).decode("utf-8", errors="replace")

    name = (original_name or "").lower()
    if name.endswith(".json") or text.lstrip().startswith(("[", "{")):
        return _preview_json(text)
    if name.endswith(".tsv"):
        return _preview_delimited(text, "\t", "tsv")
    return _preview_delimited(text, ",", "csv")
