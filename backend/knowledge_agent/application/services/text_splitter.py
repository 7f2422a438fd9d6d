"""Recursive character text splitter used to chunk extracted documents."""

_DEFAULT_SEPARATORS = ["\n\n", "\n", ". ", " "]


class TextSplitter:
    """Split text into overlapping chunks of at most ``chunk_size`` characters.

    Splits on paragraph breaks first, then lines, sentences and words. A
    piece with no separator left is cut at the size limit.
    """

    def __init__(
        self,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        separators: list[str] | None = None,
    ):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if chunk_overlap < 0 or chunk_overlap >= chunk_size:
            raise ValueError("chunk_overlap must be in [0, chunk_size)")
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap
        self._separators = separators or list(_DEFAULT_SEPARATORS)

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def chunk_overlap(self) -> int:
        return self._chunk_overlap

    def split(self, text: str) -> list[str]:
        text = text.strip()
        if not text:
            return []

        if len(text) <= self._chunk_size:
            return [text]

        chunks: list[str] = []
        self._recursive_split(text, self._separators, chunks)
        return chunks

    def _recursive_split(self, text: str, separators: list[str], chunks: list[str]) -> None:
        """Recursively split text using the separator hierarchy."""
        if len(text) <= self._chunk_size:
            if text.strip():
                chunks.append(text.strip())
            return

        remaining = list(separators)
        best_sep = None
        while remaining:
            sep = remaining.pop(0)
            if sep in text:
                best_sep = sep
                break

        if best_sep is None:
            self._hard_split(text, chunks)
            return

        current_chunk = ""
        for part in text.split(best_sep):
            if len(part) > self._chunk_size:
                if current_chunk.strip():
                    chunks.append(current_chunk.strip())
                self._recursive_split(part, remaining, chunks)
                current_chunk = ""
                continue

            candidate = f"{current_chunk}{best_sep}{part}" if current_chunk else part

            if len(candidate) > self._chunk_size and current_chunk:
                chunks.append(current_chunk.strip())
                # Overlap: keep the tail of the previous chunk
                overlap_text = self._overlap_tail(current_chunk, best_sep, part)
                current_chunk = f"{overlap_text}{best_sep}{part}" if overlap_text else part
            else:
                current_chunk = candidate

        if current_chunk.strip():
            chunks.append(current_chunk.strip())

    def _overlap_tail(self, previous: str, sep: str, next_part: str) -> str:
        if not self._chunk_overlap:
            return ""
        keep = min(self._chunk_overlap, self._chunk_size - len(sep) - len(next_part))
        if keep <= 0:
            return ""
        return previous[-keep:]

    def _hard_split(self, text: str, chunks: list[str]) -> None:
        step = self._chunk_size - self._chunk_overlap
        for start in range(0, len(text), step):
            piece = text[start : start + self._chunk_size].strip()
            if piece:
                chunks.append(piece)
            if start + self._chunk_size >= len(text):
                break
