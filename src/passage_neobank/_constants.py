"""Internal constants shared across the library."""

API_BASE_URL = "https://api.tryportola.com/api/v1"
USER_AGENT = "passage-neobank-python"
ENVIRONMENTS: frozenset[str] = frozenset({"sandbox", "production"})

# ------------------------------------------------------------------
# Hybrid envelope (AES-256-GCM + RSA-OAEP/SHA-256)
# ------------------------------------------------------------------

AES_KEY_SIZE = 32
GCM_NONCE_SIZE = 12
GCM_TAG_SIZE = 16

# uint32 big-endian metadata length at the front of a packed SDX document
DOCUMENT_LENGTH_PREFIX = 4

# ------------------------------------------------------------------
# Webhooks
# ------------------------------------------------------------------

SIGNATURE_HEADER = "x-passage-signature"
DEFAULT_WEBHOOK_TOLERANCE = 300

# ------------------------------------------------------------------
# Retry / backoff
# ------------------------------------------------------------------

DEFAULT_TIMEOUT = 30.0
DEFAULT_MAX_RETRIES = 3
BACKOFF_BASE_DELAY = 0.1
BACKOFF_MAX_DELAY = 10.0
