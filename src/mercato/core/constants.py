"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# PostgreSQL identifiers are truncated past 63 bytes
MAX_IDENTIFIER_LENGTH = 63

# Tenancy
DEFAULT_TENANT_SCHEMA_PREFIX = "tenant_"
DEFAULT_SHARED_SCHEMA = "public"
DEFAULT_TENANT_TRANSACTION_TIMEOUT = 15.0
TENANT_ID_PATTERN = r"^[A-Za-z0-9_-]+$"
POSTGRES_ISOLATION_LEVELS = frozenset(
    {
        "READ COMMITTED",
        "REPEATABLE READ",
        "SERIALIZABLE",
    }
)

# Rate limiting: read requests are GET and HEAD, everything else writes
DEFAULT_RATE_LIMIT_READ_REQUESTS = 180
DEFAULT_RATE_LIMIT_WRITE_REQUESTS = 60
DEFAULT_RATE_LIMIT_WINDOW = 60
READ_METHODS = frozenset({"GET", "HEAD"})

# String field lengths
MAX_TENANT_ID_LENGTH = 56
MAX_SLUG_LENGTH = 63
MAX_EMAIL_LENGTH = 255
MAX_NAME_LENGTH = 255
MAX_USERNAME_LENGTH = 100
MAX_SKU_LENGTH = 64
MAX_ROLE_NAME_LENGTH = 100
MAX_PERMISSION_RESOURCE_LENGTH = 100
MAX_PERMISSION_ACTION_LENGTH = 50
MAX_DESCRIPTION_LENGTH = 255

# Password requirements
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128
BCRYPT_ROUNDS = 12

# Pagination defaults
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200

# Token settings
ACCESS_TOKEN_JTI_LENGTH = 32

# Secret key requirements
MIN_SECRET_KEY_LENGTH = 32
DEFAULT_INSECURE_SECRET = "change-me-in-production"
