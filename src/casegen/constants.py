"""
Project-wide defaults for the case generation pipeline

Every value here is a default only; the configuration layer exposes each of
them as a tunable field.
"""

# Upstream completion service
DEFAULT_MODEL = "meta-llama/Llama-3.3-70B-Instruct-Turbo-Free"
DEFAULT_BASE_URL = "https://api.together.xyz/v1"
DEFAULT_REQUEST_TIMEOUT_S = 60.0

# Rate governance
RATE_WINDOW_SECONDS = 60.0
DEFAULT_MAX_REQUESTS_PER_MINUTE = 50
DEFAULT_MIN_DELAY_MS = 2_000
DEFAULT_DAILY_CAP = 200
DEFAULT_SAFETY_BUFFER_MS = 5_000

# Circuit breaker
DEFAULT_MAX_CONSECUTIVE_THROTTLE_ERRORS = 3
DEFAULT_COOLDOWN_MS = 300_000

# Mock responder
DEFAULT_MOCK_DELAY_MS = 2_000

# Extraction
MAX_REPLY_CHARS = 1_000_000  # 1MB limit
