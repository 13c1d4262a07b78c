"""Internal constants shared across the library."""

USER_AGENT = "pyqikpod"

#: Bearer token the service accepts for public endpoints before login.
PUBLIC_TOKEN = (
    "eyJ0eXAiOiJKV1QiLCJhbGciOiJIUzI1NiJ9."
    "eyJhY2wiOiJhZG1pbiIsImV4cCI6MTkxMTYyMDE1OX0."
    "RMEW55tHQ95GVap8ChrGdPRbuVxef4Shf0NRddNgGJo"
)

#: A login token is honoured for one week after it was issued.
TOKEN_TTL_SECONDS: float = 7 * 24 * 60 * 60

OTP_RESEND_COOLDOWN_SECONDS = 30
PHONE_DIGITS = 10
OTP_DIGITS = 6
DEFAULT_PAGE_SIZE = 10

RECORDS_NOT_FOUND = "Records not found."
MASKED_OTP = "*****"

# ------------------------------------------------------------------
# Persisted state keys
# ------------------------------------------------------------------

KEY_API_BASE_URL = "qikpod_api_base_url"
KEY_USER = "qikpod_user"
KEY_AUTH_TOKEN = "auth_token"
KEY_AUTH_TOKEN_TIMESTAMP = "auth_token_timestamp"
KEY_LOCATION_ID = "current_location_id"
KEY_LOCATION_NAME = "current_location_name"
KEY_POD_NAME = "qikpod_pod_name"

SESSION_KEYS: tuple[str, ...] = (
    KEY_USER,
    KEY_AUTH_TOKEN,
    KEY_AUTH_TOKEN_TIMESTAMP,
    KEY_LOCATION_ID,
    KEY_LOCATION_NAME,
    KEY_POD_NAME,
)

POD_ID_PREFIX = "POD-"


def base_url_from_domain(domain: str) -> str:
    """Expand a bare API domain (``"abc"``) into the service base URL."""
    return f"https://{domain.strip()}.com/podcore"
