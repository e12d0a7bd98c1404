"""
Intake Context

Responsibilities:
- Accepts raw schedule bytes plus the declared filename
- Dispatches on file extension (spreadsheet, CSV, PDF)
- Normalizes content into canonical text rows or ordered page images

Owns: Schedule file normalization
Never: Calls the generative model or interprets placement semantics
"""

from mediabrief.contexts.intake.content_extractor import CanonicalContent, extract_content

__all__ = ["CanonicalContent", "extract_content"]
