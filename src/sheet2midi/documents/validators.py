"""Document format, size, and integrity validation."""

import cv2
import numpy as np

from sheet2midi.config import Settings, get_settings
from sheet2midi.models.errors import ErrorKind, FailureSignal, RecognitionFailure
from sheet2midi.models.options import Document

# container signature -> extensions it may carry
SIGNATURES: list[tuple[bytes, str, tuple[str, ...]]] = [
    (b"\x89PNG\r\n\x1a\n", "png", ("png",)),
    (b"\xff\xd8\xff", "jpeg", ("jpg", "jpeg")),
    (b"%PDF-", "pdf", ("pdf",)),
    (b"BM", "bmp", ("bmp",)),
    (b"II*\x00", "tiff", ("tif", "tiff")),
    (b"MM\x00*", "tiff", ("tif", "tiff")),
]


def _format_failure(detail: str) -> RecognitionFailure:
    return RecognitionFailure(FailureSignal(cause=ErrorKind.FORMAT.value, detail=detail))


def validate_document_format(document: Document, allowed_formats: list[str]) -> None:
    """Validate that the document has an allowed extension."""
    ext = document.extension
    if ext not in allowed_formats:
        raise _format_failure(f"Unsupported format: .{ext}. Allowed: {allowed_formats}")


def validate_document_size(document: Document, max_size_mb: int | None = None) -> None:
    """Validate that the document is non-empty and within the size limit."""
    if document.size_bytes == 0:
        raise _format_failure(f"Document is empty: {document.filename}")
    max_mb = max_size_mb or get_settings().upload_max_size_mb
    size_mb = document.size_bytes / (1024 * 1024)
    if size_mb > max_mb:
        raise _format_failure(f"File too large: {size_mb:.1f}MB exceeds {max_mb}MB limit")


def sniff_container(content: bytes) -> tuple[str, tuple[str, ...]] | None:
    """Identify the container from its leading bytes."""
    for magic, container, extensions in SIGNATURES:
        if content.startswith(magic):
            return container, extensions
    return None


def decode_image(content: bytes) -> np.ndarray:
    """Decode raster image bytes to a grayscale array."""
    buffer = np.frombuffer(content, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_GRAYSCALE)
    if image is None:
        raise _format_failure("Image data is corrupted or unreadable")
    return image


def validate_document_integrity(document: Document) -> np.ndarray | None:
    """Check the container signature. Returns the decoded image, or None for PDFs."""
    sniffed = sniff_container(document.content)
    if sniffed is None:
        raise _format_failure(f"Unrecognized document contents: {document.filename}")
    container, extensions = sniffed
    if document.extension not in extensions:
        raise _format_failure(
            f"File extension .{document.extension} does not match {container} contents"
        )
    if container == "pdf":
        if b"%%EOF" not in document.content[-1024:]:
            raise _format_failure("PDF document is truncated")
        return None
    return decode_image(document.content)


def validate_document(document: Document, settings: Settings | None = None) -> np.ndarray | None:
    """Full validation for document uploads."""
    settings = settings or get_settings()
    validate_document_format(document, settings.allowed_document_formats)
    validate_document_size(document, settings.upload_max_size_mb)
    return validate_document_integrity(document)
