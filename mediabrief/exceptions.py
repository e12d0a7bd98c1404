"""Exceptions raised by the schedule import pipeline."""

from typing import Optional


class ScheduleImportError(Exception):
    """Base class for every error surfaced to the operator by the import pipeline."""

    pass


class UnsupportedFormat(ScheduleImportError):
    """
    Raised when a schedule file's extension is not one the intake context handles.

    Attributes:
        filename: Declared filename of the upload
        extension: Lower-cased extension that failed dispatch
    """

    def __init__(self, filename: str, extension: str, supported: tuple[str, ...] = ()):
        self.filename = filename
        self.extension = extension

        message = f"Unsupported file type '{extension or '(none)'}' for {filename}."
        if supported:
            message += f" Upload one of: {', '.join(supported)}"
        super().__init__(message)


class EmptyDocument(ScheduleImportError):
    """
    Raised when a schedule file yields no rows (spreadsheet/CSV) or no pages (PDF).

    Attributes:
        filename: Declared filename of the upload
        reason: Optional underlying reader error
    """

    def __init__(self, filename: str, reason: Optional[str] = None):
        self.filename = filename
        self.reason = reason

        message = f"Could not extract content from {filename}. The file may be empty or corrupted."
        if reason:
            message += f"\nReader error: {reason}"
        super().__init__(message)


class ExtractionError(ScheduleImportError):
    """
    Raised when the model response cannot be parsed as a JSON object.

    Attributes:
        response_preview: First characters of the offending response (if any)
    """

    def __init__(self, message: str, response_preview: Optional[str] = None):
        self.response_preview = response_preview

        parts = [message]
        if response_preview:
            parts.append(f"\nResponse preview:\n{response_preview}")
        super().__init__("\n".join(parts))


class ModelUnavailable(ScheduleImportError):
    """
    Raised on transport or provider failure while calling the generative model.

    Attributes:
        provider: Provider name (e.g., "openai/gpt-4o-mini")
        original_error: The underlying SDK exception
    """

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.provider = provider
        self.original_error = original_error

        parts = [message]
        if provider:
            parts.append(f"Provider: {provider}")
        if original_error:
            parts.append(f"Original error: {original_error}")
        super().__init__("\n".join(parts))


class ImportSessionError(ScheduleImportError):
    """Raised when an import session is driven through an illegal state transition."""

    pass
