"""Domain errors and failure typing."""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for conversion failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class InputError(PipelineError):
    """Raised when a required input document cannot be read or understood."""

    error_code = "INPUT_ERROR"

    def __init__(self, message: str, location: str | None = None) -> None:
        super().__init__(message)
        self.location = location


class LoadError(InputError):
    """Raised when a document cannot be read from disk or parsed."""

    error_code = "LOAD_ERROR"


class OverlayError(PipelineError):
    """Overlay failures; these never abort a run."""

    error_code = "OVERLAY_ERROR"


class OverlayFetchError(OverlayError):
    error_code = "OVERLAY_FETCH_ERROR"


class OverlayTimeoutError(OverlayFetchError):
    error_code = "OVERLAY_TIMEOUT"


class OverlayReadError(OverlayError):
    error_code = "OVERLAY_READ_ERROR"


class OutputWriteError(PipelineError):
    """Raised when the converted document cannot be written."""

    error_code = "OUTPUT_WRITE_ERROR"
