"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

QR_CODE_PREFIX = "QR"
QR_MAX_GENERATION_ATTEMPTS = 5
QR_RANDOM_SUFFIX_LENGTH = 6
QR_IMAGE_WIDTH = 300
QR_LIST_IMAGE_WIDTH = 200
DEFAULT_COMPANY_NAME = "Mi Empresa"

DEFAULT_GRACE_MINUTES = 15
DEFAULT_HISTORY_MONTHS = 1

JWT_ALGORITHM = "HS256"
DEFAULT_TOKEN_HOURS = 24

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6

PUSH_CHANNEL_ID = "attendance_channel"
