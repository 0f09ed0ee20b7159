"""
Audio extraction errors.

Only ClassifiedExtractionError carries text that is safe to show a user as is;
every other error is reported with a generic message and logged in full.
"""

from enum import Enum


class FailureCategory(Enum):
    """User-meaningful categories of a failed yt-dlp run."""
    PRIVATE = "private"
    AGE_RESTRICTED = "age_restricted"
    UNAVAILABLE = "unavailable"
    COPYRIGHT = "copyright"
    SIGN_IN_REQUIRED = "sign_in_required"
    UNKNOWN = "unknown"


class AudioExtractorError(Exception):
    """Audio extractor specific errors."""
    pass


class ClassifiedExtractionError(AudioExtractorError):
    """yt-dlp failed and its diagnostics were mapped to a known category."""

    def __init__(self, category: FailureCategory, message: str, diagnostics: str = ""):
        super().__init__(message)
        self.category = category
        self.message = message
        self.diagnostics = diagnostics


class ToolInvocationError(AudioExtractorError):
    """yt-dlp could not be started."""
    pass


class MetadataParseError(AudioExtractorError):
    """yt-dlp metadata output was not valid JSON."""
    pass


class StreamTruncatedError(AudioExtractorError):
    """yt-dlp exited with an error after the audio stream had started."""

    def __init__(self, returncode: int, diagnostics: str = ""):
        super().__init__(f"yt-dlp exited with code {returncode} during streaming")
        self.returncode = returncode
        self.diagnostics = diagnostics


class StreamConsumedError(AudioExtractorError):
    """An audio stream was iterated a second time."""
    pass
