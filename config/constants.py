"""
Centralized constants for Letter Translator.
All tunables for the AI call path live here; Settings overrides them from .env.
"""

# ===========================================
# ADMISSION QUEUE
# ===========================================
QUEUE_CONCURRENCY_LIMIT = 1           # at most one in-flight AI call
QUEUE_RATE_LIMIT = 10                 # task starts per window
QUEUE_WINDOW_MS = 60000               # fixed rate window (1 minute)
QUEUE_SECONDS_PER_POSITION = 15       # UI estimate: "~N x 15s remaining"

# ===========================================
# RETRY / BACKOFF
# ===========================================
RETRY_MAX_ATTEMPTS = 3
RETRY_BASE_DELAY_MS = 2000            # delay = base * 2^attempt + jitter
RETRY_JITTER_MS = 1000                # jitter drawn from [0, RETRY_JITTER_MS)
TRANSIENT_STATUS_CODES = (429, 503)   # rate limited, overloaded

# ===========================================
# GEMINI
# ===========================================
GEMINI_DEFAULT_MODEL = "gemini-2.0-flash"
GEMINI_TEMPERATURE = 1.0
GEMINI_TOP_P = 0.8
GEMINI_TOP_K = 40
GEMINI_STOP_SEQUENCE = "END_OF_TRANSLATION"
MAX_IMAGES_PER_LETTER = 3

# ===========================================
# API / SERVER
# ===========================================
REQUEST_TIMEOUT_SECONDS = 300.0
BUSY_MESSAGE = (
    "The AI service is temporarily busy due to high volume. "
    "Please wait about 5-10 minutes before retrying."
)
BUSY_ERROR_CODE = "RATE_LIMIT_EXCEEDED"

# ===========================================
# LOGGING
# ===========================================
LOG_ROOT_NAME = 'letter_translator'
LOG_LEVEL = 'INFO'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_FILE = 'logs/letter_translator.log'
LOG_MAX_SIZE_MB = 10
LOG_BACKUP_COUNT = 5
