"""
PDF processing utilities for page-image rendering.

Schedule PDFs are mostly tabular or graphic layouts whose text layer does not
survive extraction, so pages are rasterized and handed to a vision model.

Helper functions:
    page_count: Quick page count without rendering.
    render_pages: Render pages to PNG bytes in document order.
"""

import io
from typing import List, Optional, Union

import pdfplumber
from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

PdfSource = Union[bytes, io.BytesIO]


def _as_stream(source: PdfSource) -> io.BytesIO:
    if isinstance(source, bytes):
        return io.BytesIO(source)
    source.seek(0)
    return source


def page_count(source: PdfSource) -> Optional[int]:
    """Get page count from PDF bytes, or None if unreadable."""
    try:
        reader = PdfReader(_as_stream(source))
        return len(reader.pages)
    except (PdfReadError, ValueError, OSError):
        return None


def render_pages(source: PdfSource, resolution: int = 150, max_pages: int = 20) -> List[bytes]:
    """
    Render PDF pages to PNG images.

    Args:
        source: Raw PDF bytes (or a binary stream)
        resolution: Render DPI. 150 keeps small table print legible without
                    blowing past provider image size limits.
        max_pages: Upper bound on rendered pages (first N pages are kept)

    Returns:
        PNG bytes for each page, in document order.

    Raises:
        pdfminer / pdfplumber errors if the document cannot be opened.
    """
    images: List[bytes] = []

    with pdfplumber.open(_as_stream(source)) as pdf:
        for page in pdf.pages[:max_pages]:
            rendered = page.to_image(resolution=resolution).original
            if rendered.mode != "RGB":
                rendered = rendered.convert("RGB")

            buffer = io.BytesIO()
            rendered.save(buffer, format="PNG")
            images.append(buffer.getvalue())

    return images
