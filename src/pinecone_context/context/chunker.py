DEFAULT_MAX_CHUNK_SIZE = 1000
DEFAULT_OVERLAP = 100

# Tried in order; the first one far enough into the window wins.
_BREAK_POINTS = ("\n\n", "\n", ". ", "! ", "? ")


class Chunker:
    """Splits text into overlapping character-bounded chunks.

    Chunks end at the latest paragraph, line or sentence break that still
    leaves the chunk longer than half of ``max_chunk_size``; otherwise the
    window is cut at ``max_chunk_size``.
    """

    def __init__(
        self,
        max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE,
        overlap: int = DEFAULT_OVERLAP,
    ) -> None:
        if max_chunk_size <= 0:
            raise ValueError(f"max_chunk_size must be positive, got {max_chunk_size}")
        if overlap < 0:
            raise ValueError(f"overlap must not be negative, got {overlap}")
        if overlap >= max_chunk_size:
            raise ValueError(
                f"overlap ({overlap}) must be smaller than max_chunk_size ({max_chunk_size})"
            )
        self._max_chunk_size = max_chunk_size
        self._overlap = overlap

    @property
    def max_chunk_size(self) -> int:
        return self._max_chunk_size

    @property
    def overlap(self) -> int:
        return self._overlap

    def chunk(self, text: str) -> list[str]:
        chunks: list[str] = []
        length = len(text)
        start = 0

        while start < length:
            end = start + self._max_chunk_size

            if end < length:
                end = self._find_break(text, start, end)

            piece = text[start:end].strip()
            if piece:
                chunks.append(piece)

            if end >= length:
                break

            # An early break can leave less than `overlap` characters of progress;
            # step forward by one so consecutive chunks still share text.
            start = max(end - self._overlap, start + 1)

        return chunks

    def _find_break(self, text: str, start: int, end: int) -> int:
        min_break = start + self._max_chunk_size / 2
        for marker in _BREAK_POINTS:
            # last occurrence beginning at or before `end`
            last_break = text.rfind(marker, 0, end + len(marker))
            if last_break > min_break:
                return last_break + len(marker)
        return end
