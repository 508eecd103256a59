"""Basic exceptions for Gemini text extraction"""  # noqa: D415


class GeminiExtractError(Exception):
    """Base exception for Gemini text extraction errors"""  # noqa: D415


class ConfigurationError(GeminiExtractError):
    """Raised when configuration values fail validation"""  # noqa: D415


class MissingKeyError(GeminiExtractError):
    """Raised when required API key or configuration key is missing"""  # noqa: D415


class ClientInitError(MissingKeyError):
    """Raised when the remote extraction client cannot be initialized.

    This is fatal for the remote path of a request and is never retried.
    """


class APIError(GeminiExtractError):
    """Raised when the remote extractor returns an unusable response"""  # noqa: D415


class OversizeError(GeminiExtractError):
    """Raised when a payload exceeds the absolute supported size"""  # noqa: D415

    def __init__(self, size_bytes: int, limit_bytes: int):
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        super().__init__(
            f"File size ({size_bytes / (1024 * 1024):.2f} MB) exceeds the maximum "
            f"allowed limit of {limit_bytes / (1024 * 1024):.0f} MB"
        )


class ConversionError(GeminiExtractError):
    """Raised when a single conversion strategy fails"""  # noqa: D415


class OutputWriteError(GeminiExtractError):
    """Raised when an output artifact cannot be written"""  # noqa: D415


class InvariantViolationError(GeminiExtractError):
    """Raised when collected chunk outcomes break the one-per-ordinal rule"""  # noqa: D415
