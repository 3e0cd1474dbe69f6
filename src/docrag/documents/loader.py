"""Source adapters for in-memory bytes: plain text, PDF, CSV.

Each adapter normalizes raw input into an ordered list of ``Segment``s
that the ingestion pipeline chunks independently. Web pages are fetched
asynchronously and live in ``docrag.documents.web``.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Callable

from docrag.errors import IngestionFailure, UnsupportedSourceKind, ValidationError
from docrag.documents.schemas import LoadResult, Segment, SourceKind

logger = logging.getLogger(__name__)

_ENCODINGS = ("utf-8", "cp1252")


def decode_bytes(data: bytes) -> tuple[str, list[str]]:
    """Decode raw bytes, falling back from utf-8 to cp1252 and latin-1.

    latin-1 maps every byte, so decoding always succeeds; any fallback is
    reported as a warning.
    """
    warnings: list[str] = []
    for encoding in _ENCODINGS:
        try:
            text = data.decode(encoding)
        except UnicodeDecodeError:
            continue
        if encoding != "utf-8":
            warnings.append(f"Decoded as {encoding} (not valid utf-8)")
        return text, warnings
    warnings.append("Decoded as latin-1 (not valid utf-8)")
    return data.decode("latin-1"), warnings


class DocumentLoader:
    """Load file bytes of a declared kind into a ``LoadResult``."""

    def __init__(self, csv_rows_per_segment: int = 1, max_file_size_mb: int = 50):
        if csv_rows_per_segment < 1:
            raise ValueError("csv_rows_per_segment must be >= 1")
        self.csv_rows_per_segment = csv_rows_per_segment
        self.max_bytes = max_file_size_mb * 1024 * 1024

    def load_text(self, text: str, name: str) -> LoadResult:
        """Plain text pass-through: a single logical segment."""
        if not text or not text.strip():
            raise ValidationError("Text content is required", "Text content is required.")
        return LoadResult(
            segments=[Segment(text=text)],
            name=name,
            kind=SourceKind.TEXT,
            size_bytes=len(text.encode("utf-8")),
        )

    def load_bytes(self, data: bytes, filename: str, kind: SourceKind | str) -> LoadResult:
        """Load a document from in-memory bytes of the declared kind."""
        try:
            kind = SourceKind(kind)
        except ValueError as exc:
            raise UnsupportedSourceKind(f"Unsupported source kind '{kind}'") from exc

        handler = self._handlers().get(kind)
        if handler is None:
            raise UnsupportedSourceKind(
                f"Source kind '{kind}' cannot be loaded from bytes",
                "Web pages must be added by URL.",
            )
        if not data:
            raise ValidationError("File is empty", "The uploaded file is empty.")
        if len(data) > self.max_bytes:
            raise IngestionFailure(
                f"{filename}: {len(data)} bytes exceeds limit of {self.max_bytes}",
                "The file is too large.",
            )

        result = handler(data, filename)
        result.size_bytes = len(data)
        logger.info(
            "Loaded %s (%s): %d segments, %d chars",
            filename, kind.value, len(result.segments), result.char_count,
        )
        return result

    # ------------------------------------------------------------------
    # Private dispatch
    # ------------------------------------------------------------------

    def _handlers(self) -> dict[SourceKind, Callable[[bytes, str], LoadResult] | None]:
        # Every SourceKind must appear here; None marks kinds that need a fetcher.
        return {
            SourceKind.TEXT: self._load_txt,
            SourceKind.PDF: self._load_pdf,
            SourceKind.CSV: self._load_csv,
            SourceKind.WEB_PAGE: None,
        }

    # ------------------------------------------------------------------
    # Format-specific loaders
    # ------------------------------------------------------------------

    @staticmethod
    def _load_txt(data: bytes, filename: str) -> LoadResult:
        text, warnings = decode_bytes(data)
        if not text.strip():
            raise IngestionFailure(f"{filename}: no text content", "The text file is empty.")
        return LoadResult(
            segments=[Segment(text=text)],
            name=filename,
            kind=SourceKind.TEXT,
            warnings=warnings,
        )

    @staticmethod
    def _load_pdf(data: bytes, filename: str) -> LoadResult:
        import pdfplumber

        warnings: list[str] = []
        segments: list[Segment] = []

        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                for number, page in enumerate(pdf.pages, 1):
                    text = page.extract_text() or ""
                    if not text.strip():
                        warnings.append(f"Page {number} has no extractable text")
                        continue
                    segments.append(
                        Segment(text=text, locator=f"page {number}", page_number=number)
                    )
        except Exception as exc:
            raise IngestionFailure(
                f"{filename}: PDF extraction error: {exc}",
                "The PDF could not be parsed.",
            ) from exc

        if not segments:
            raise IngestionFailure(
                f"{filename}: PDF contains no extractable text (may be scanned/image-only)",
                "The PDF contains no extractable text.",
            )

        return LoadResult(segments=segments, name=filename, kind=SourceKind.PDF, warnings=warnings)

    def _load_csv(self, data: bytes, filename: str) -> LoadResult:
        import pandas as pd

        text, warnings = decode_bytes(data)
        try:
            df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
            raise IngestionFailure(
                f"{filename}: CSV parse error: {exc}",
                "The CSV file could not be parsed.",
            ) from exc

        if df.empty:
            raise IngestionFailure(f"{filename}: CSV has no data rows", "The CSV file has no rows.")

        columns = [str(c).strip() for c in df.columns]
        rows = [
            "\n".join(f"{col}: {str(value).strip()}" for col, value in zip(columns, record))
            for record in df.itertuples(index=False, name=None)
        ]

        segments: list[Segment] = []
        size = self.csv_rows_per_segment
        for start in range(0, len(rows), size):
            group = rows[start : start + size]
            first, last = start + 1, start + len(group)
            locator = f"row {first}" if first == last else f"rows {first}-{last}"
            segments.append(Segment(text="\n\n".join(group), locator=locator))

        return LoadResult(segments=segments, name=filename, kind=SourceKind.CSV, warnings=warnings)
