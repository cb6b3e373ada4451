"""Constants and defaults.

Note: Keep constants here to avoid magic values spread across code.
"""

SETTINGS_ROW_ID = 1

DEFAULT_OPENING_TIME = "08:00"
DEFAULT_MAX_SHIFT_HOURS = 12
DEFAULT_HISTORY_LIMIT = 100
DEFAULT_TIMEZONE = "Europe/Madrid"

# QR payloads carry the token in this query parameter.
QR_POINT_PARAM = "point"
# Flask session key holding the last validated token.
QR_SESSION_KEY = "turnqr_point"

IN_PROGRESS_LABEL = "En curso"
NO_NAME_LABEL = "Sin nombre"
NO_ROLE_LABEL = "Sin rol"

# Dashboard cache lifetime; writes made by other worker processes show up after this.
DASHBOARD_CACHE_SECONDS = 5.0
