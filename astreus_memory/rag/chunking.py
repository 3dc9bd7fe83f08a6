"""Fixed-size overlapping text chunking."""

from bisect import bisect_right
from typing import Any, Dict, List, Optional

from ..models.rag import Chunk
from ..utils.validation import validate_chunking

# Document metadata keys copied onto every chunk
INHERITED_METADATA_KEYS = ("source", "section", "language", "title")


def chunk_text(text: str, chunk_size: int, chunk_overlap: int) -> List[str]:
    """Split text into windows of ``chunk_size`` characters.

    Windows advance by ``chunk_size - chunk_overlap`` characters. The final
    window may be shorter and is always emitted. Empty text yields no chunks.
    """
    validate_chunking(chunk_size, chunk_overlap)
    return [text[start:end] for start, end in _windows(len(text), chunk_size, chunk_overlap)]


def _windows(length: int, chunk_size: int, chunk_overlap: int) -> List[tuple]:
    step = chunk_size - chunk_overlap
    windows = []
    start = 0
    while start < length:
        end = min(start + chunk_size, length)
        windows.append((start, end))
        if end >= length:
            break
        start += step
    return windows


class Chunker:
    """Builds Chunk models for a document."""

    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 200):
        validate_chunking(chunk_size, chunk_overlap)
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def split(self, text: str) -> List[str]:
        return chunk_text(text, self.chunk_size, self.chunk_overlap)

    def chunk_document(
        self,
        document_id: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
        page_breaks: Optional[List[int]] = None,
    ) -> List[Chunk]:
        """Chunk a document's content, attaching position and page metadata.

        ``page_breaks`` holds the character offsets at which pages 2, 3, ...
        begin (``metadata["page_breaks"]`` is used when it is not given). Each
        chunk records the page its first character falls on.
        """
        metadata = metadata or {}
        windows = _windows(len(content), self.chunk_size, self.chunk_overlap)
        if page_breaks is None:
            page_breaks = metadata.get("page_breaks")
        page_breaks = sorted(page_breaks or [])

        inherited = {k: metadata[k] for k in INHERITED_METADATA_KEYS if k in metadata}
        if "page" in metadata and not page_breaks:
            inherited["page"] = metadata["page"]

        chunks = []
        for index, (start, end) in enumerate(windows):
            chunk_metadata = {
                **inherited,
                "chunk_index": index,
                "total_chunks": len(windows),
                "start_char": start,
                "end_char": end,
            }
            if page_breaks:
                chunk_metadata["page"] = bisect_right(page_breaks, start) + 1

            chunks.append(
                Chunk(
                    id=f"{document_id}#{index}",
                    document_id=document_id,
                    content=content[start:end],
                    metadata=chunk_metadata,
                )
            )
        return chunks
