"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
DEFAULT_TOKEN_TTL = "1h"
MIN_PASSWORD_LENGTH = 6

DEFAULT_ATTENDANCE_TYPE = "Entrada"
DEFAULT_SUBSCRIPTION_STATUS = "Active"

DISTRICT_CODE_PATTERN = r"^\d{2}-\d{2}$"
ROLE_NAME_PATTERN = r"^[a-zA-Z0-9_]+$"

DEFAULT_POOL_SIZE = 15
DEFAULT_POOL_TIMEOUT_SECONDS = 10.0
DEFAULT_POOL_QUEUE_LIMIT = 50

GENERIC_SERVER_ERROR = "Error interno del servidor."

MAX_ATTENDANCE_TYPE_LENGTH = 30
ATTENDANCE_EXISTS_TODAY = "Registro de asistencia ya existe para hoy."
EXCUSE_EXISTS_FOR_DATE = "La excusa para esta fecha ya existe."
