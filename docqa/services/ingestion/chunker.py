"""Text chunking with overlapping character windows and natural break points.

Splits extracted document text into :class:`~docqa.models.rag.TextChunk`
windows sized for embedding models (1000 characters with 200 characters of
overlap by default).

The chunking strategy has two goals:

1. **Break-preserving** -- A window ends at the most natural boundary found
   in the back half of its budget: a paragraph break first, then a line
   break, a sentence end, and finally a word boundary.  Only when the back
   half holds none of these is the text cut hard at ``chunk_size``.

2. **Overlapping windows** -- Consecutive windows share up to ``overlap``
   characters so that a statement straddling a boundary is whole in at
   least one window.  The overlap start is nudged forward to the next word
   start so windows do not open mid-word.

Every window records its ``start``/``end`` offsets into the source text, so
the original can be reassembled by concatenating each window's tail past
the previous window's end.
"""

from __future__ import annotations

import re

import structlog

from docqa.models.rag import TextChunk

logger = structlog.get_logger(logger_name=__name__)

# Common abbreviations that should NOT count as a sentence end.
# "Dr. Smith" should stay in one window rather than break after "Dr.".
_ABBREVIATIONS = frozenset(
    {
        "Dr",
        "Mr",
        "Mrs",
        "Ms",
        "Prof",
        "Jr",
        "Sr",
        "St",
        "Ave",
        "Vol",
        "No",
        "vs",
        "etc",
        "approx",
        "dept",
        "inc",
        "ltd",
        "co",
        "e.g",
        "i.e",
    }
)

_SENTENCE_END = re.compile(r"[.!?]\s")
_WHITESPACE = re.compile(r"\s+")


class TextChunker:
    """Splits text into overlapping character windows.

    Parameters
    ----------
    chunk_size:
        Maximum characters per window (default 1000).
    overlap:
        Characters shared between consecutive windows (default 200).
        Must be smaller than *chunk_size*.
    """

    def __init__(self, chunk_size: int = 1000, overlap: int = 200) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if overlap < 0 or overlap >= chunk_size:
            raise ValueError("overlap must be >= 0 and smaller than chunk_size")
        self._chunk_size = chunk_size
        self._overlap = overlap

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(self, text: str) -> list[TextChunk]:
        """Split *text* into ordered, overlapping :class:`TextChunk` windows.

        Returns
        -------
        list[TextChunk]
            One chunk per window.  Empty or whitespace-only input returns an
            empty list, and whitespace-only windows are dropped.
        """
        if not text or not text.strip():
            return []

        chunks = [
            TextChunk(text=text[start:end], start=start, end=end)
            for start, end in self._window_spans(text)
            if text[start:end].strip()
        ]

        logger.debug(
            "chunking_complete",
            num_chunks=len(chunks),
            avg_chars=self._avg_chars(chunks),
            source_chars=len(text),
        )
        return chunks

    # ------------------------------------------------------------------
    # Window placement
    # ------------------------------------------------------------------

    def _window_spans(self, text: str) -> list[tuple[int, int]]:
        """Return ``(start, end)`` offsets for every window over *text*."""
        length = len(text)
        spans: list[tuple[int, int]] = []
        start = 0

        while start < length:
            limit = min(start + self._chunk_size, length)
            end = length if limit == length else self._find_break(text, start, limit)
            spans.append((start, end))
            if end >= length:
                break
            start = self._next_start(text, start, end)

        return spans

    def _find_break(self, text: str, start: int, limit: int) -> int:
        """Return the exclusive end offset of the window beginning at *start*.

        Searches ``text[floor:limit]`` where *floor* is the middle of the
        window, trying each break kind in priority order and taking the last
        occurrence of the first kind found.
        """
        floor = start + self._chunk_size // 2

        for separator in ("\n\n", "\n"):
            idx = text.rfind(separator, floor, limit)
            if idx != -1:
                return idx + len(separator)

        sentence_end = self._last_sentence_end(text, floor, limit)
        if sentence_end is not None:
            return sentence_end

        idx = text.rfind(" ", floor, limit)
        if idx != -1:
            return idx + 1

        return limit

    @staticmethod
    def _last_sentence_end(text: str, floor: int, limit: int) -> int | None:
        """Return the offset just past the last sentence end in ``[floor, limit)``.

        Uses a masking approach: periods that follow a known abbreviation are
        replaced with ``\\x00`` (same length, so offsets stay aligned) before
        searching.
        """
        # Include a little leading text so an abbreviation straddling
        # *floor* is still recognised.
        lead = max(0, floor - 8)
        masked = text[lead:limit]
        for abbr in _ABBREVIATIONS:
            masked = masked.replace(f" {abbr}.", f" {abbr}\x00")

        last: int | None = None
        for match in _SENTENCE_END.finditer(masked, floor - lead):
            last = lead + match.end()
        return last

    def _next_start(self, text: str, start: int, end: int) -> int:
        """Return where the window following ``[start, end)`` begins."""
        if self._overlap == 0:
            return end

        candidate = max(end - self._overlap, start + 1)
        if not text[candidate - 1].isspace():
            match = _WHITESPACE.search(text, candidate, end)
            if match is not None and match.end() < end:
                candidate = match.end()
        return candidate

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _avg_chars(chunks: list[TextChunk]) -> int:
        """Return the average character count across *chunks*."""
        if not chunks:
            return 0
        return sum(len(c.text) for c in chunks) // len(chunks)
