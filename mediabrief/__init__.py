"""
mediabrief - media schedule import for creative briefs

Converts publisher-supplied media schedules (spreadsheet, CSV or PDF) into
normalized placement records and stages them into a creative brief's
deliverable list.

Architecture:
- Intake Context: Schedule file normalization into canonical content
- Extraction Context: Model-based placement extraction, validation and retry
- Staging Context: Due dates, operator selection and merge into the brief cart
- Catalog Context: Read-only channel/publisher/placement specifications
"""

__version__ = "0.1.0"
