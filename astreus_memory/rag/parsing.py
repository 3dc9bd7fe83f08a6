"""Document parser contract and the built-in plain-text parser."""

from pathlib import Path
from typing import Optional, Protocol, Union, runtime_checkable

from ..config.logging import LoggerMixin
from ..core.exceptions import ValidationError
from ..models.rag import DocumentCreate, ParseOptions

# Form feeds separate pages in text extracted from paginated sources
PAGE_SEPARATOR = "\f"


@runtime_checkable
class DocumentParser(Protocol):
    """Turns a source into a document ready for ingestion."""

    def parse(self, source: Union[str, Path], options: ParseOptions) -> DocumentCreate:
        ...


class TextDocumentParser(LoggerMixin):
    """Parser for plain text and markdown files."""

    SUPPORTED_SUFFIXES = {".txt", ".text", ".md", ".markdown", ".rst", ".log", ".csv"}

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def supports(self, path: Path) -> bool:
        return path.suffix.lower() in self.SUPPORTED_SUFFIXES

    def parse(self, source: Union[str, Path], options: Optional[ParseOptions] = None) -> DocumentCreate:
        options = options or ParseOptions()
        path = Path(source)

        if not path.is_file():
            raise ValidationError(f"Not a file: {path}", "source")
        if not self.supports(path):
            raise ValidationError(f"Unsupported file type: {path.suffix or path.name}", "source")

        try:
            content = path.read_text(encoding=self.encoding)
        except UnicodeDecodeError as e:
            raise ValidationError(f"Cannot decode {path.name} as {self.encoding}: {e}", "source") from e

        if not content.strip():
            raise ValidationError(f"File has no text content: {path.name}", "source")

        metadata = {
            "source": str(path),
            "file_type": path.suffix.lower().lstrip("."),
            "language": options.language,
        }

        page_breaks = []
        offset = content.find(PAGE_SEPARATOR)
        while offset != -1:
            page_breaks.append(offset + 1)
            offset = content.find(PAGE_SEPARATOR, offset + 1)
        if page_breaks:
            metadata["page_count"] = len(page_breaks) + 1

        metadata.update(options.metadata)

        title = None
        if options.title_from_filename:
            title = path.stem
        elif metadata["file_type"] in ("md", "markdown"):
            title = _markdown_title(content)

        if options.extract_images or options.ocr_enabled:
            self.logger.debug("Image extraction and OCR do not apply to text files", path=str(path))

        return DocumentCreate(
            content=content, title=title, metadata=metadata, page_breaks=page_breaks
        )


def _markdown_title(content: str) -> Optional[str]:
    for line in content.splitlines():
        if line.startswith("# "):
            return line[2:].strip() or None
    return None
