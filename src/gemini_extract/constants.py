"""
Project-wide constants for Gemini text extraction
"""  # noqa: D200, D212, D415

# ==============================================================================
# Size Limits
# ==============================================================================

MB = 1024 * 1024

# Gemini rejects inline payloads of 20MB or more; 19MB keeps a safety margin
SINGLE_REQUEST_CEILING = 19 * MB
MAX_TOTAL_SIZE = 400 * MB

# (exclusive lower bound, chunk size), checked top to bottom
CHUNK_SIZE_TIERS = (
    (200 * MB, 10 * MB),
    (100 * MB, 8 * MB),
    (50 * MB, 6 * MB),
)
DEFAULT_CHUNK_SIZE = 5 * MB

# ==============================================================================
# Remote Extraction
# ==============================================================================

DEFAULT_MODEL = "gemini-2.0-flash"
DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_OUTPUT_TOKENS = 8192
DEFAULT_MIME_TYPE = "application/octet-stream"
PLACEHOLDER_API_KEY = "YOUR_GEMINI_API_KEY"
MIN_API_KEY_LENGTH = 10

CHUNK_PROMPT = (
    "This is chunk {ordinal} of {total} from a file. Please extract all text "
    "from this chunk only, without any comments or explanations."
)

# ==============================================================================
# Retry and Batching
# ==============================================================================

MAX_CHUNK_ATTEMPTS = 3
BACKOFF_BASE_SECONDS = 2.0
BATCH_WIDTH = 3
BATCH_DELAY_SECONDS = 2.0

# Lower-cased fragments that mark an error as network/timeout/rate-limit related
TRANSIENT_ERROR_MARKERS = (
    "network",
    "timeout",
    "timed out",
    "rate limit",
    "429",
    "unavailable",
    "temporarily",
    "connection",
    "resource exhausted",
    "deadline",
)

# ==============================================================================
# Assembly
# ==============================================================================

LOW_SUCCESS_RATE_PERCENT = 50.0
EMPTY_EXTRACTION_NOTICE = (
    "No valid text was extracted from the file. "
    "It may be damaged or in an unsupported format."
)
MAX_ERROR_MESSAGE_LENGTH = 500

# ==============================================================================
# Conversion
# ==============================================================================

PDF_SIGNATURE = b"%PDF-"
PDF_MIN_SIZE = 100  # bytes
CONVERTER_TIMEOUT_SECONDS = 60.0
CONVERTER_MAX_ATTEMPTS = 5
CONVERTER_RETRY_DELAY_SECONDS = 2.0
KILL_TIMEOUT_SECONDS = 5.0
KILL_SETTLE_SECONDS = 2.0
