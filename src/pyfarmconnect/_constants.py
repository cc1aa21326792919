"""Internal constants shared across the library."""

BASE_URL = "https://farm-connect.amritagrotech.com/api"
USER_AGENT = "pyfarmconnect"

# ------------------------------------------------------------------
# REST endpoints (relative to the base URL)
# ------------------------------------------------------------------

LOGIN_ENDPOINT = "/admin_vehicles/driver_app_login"
ALL_TASKS_ENDPOINT = "/admin_vehicles/get_all_task/{staff_id}"
UPDATE_REQUEST_STATUS_ENDPOINT = "/admin_vehicles/update_request_status"
MAKE_REQUEST_ENDPOINT = "/admin_ops_requests/make_request"
OUTGOING_REQUESTS_ENDPOINT = "/admin_ops_requests/get_outgoing_requests/{staff_id}"

# ------------------------------------------------------------------
# Event stream channels
# ------------------------------------------------------------------

LOGISTICS_STREAM_PATH = "/ws/logistics"
FUEL_STREAM_PATH = "/ws/fuel_requests"

LOGISTICS_REQUEST_CREATED = "LOGISTICS_REQUEST_CREATED"
FUEL_REQUEST_UPDATED = "fuel_request_updated"

# ------------------------------------------------------------------
# Local key-value storage keys
# ------------------------------------------------------------------

STAFF_ID_KEY = "STAFF_ID"
CHECKIN_REQUEST_ID_KEY = "CHECKIN_REQUEST_ID"
OUTGOING_QUEUE_KEY = "OUTGOING_REQUEST_QUEUE"

# ------------------------------------------------------------------
# Reconnect backoff: min(max_delay, base_delay * 2**attempt)
# ------------------------------------------------------------------

RECONNECT_BASE_DELAY = 0.5
RECONNECT_MAX_DELAY = 15.0
RECONNECT_MAX_ATTEMPT = 10

DEFAULT_LOGISTICS_ACTIVITY = "Logistics Request"
LOGISTICS_ACTIVITIES: frozenset[str] = frozenset({"logistics request", "logistics"})
FUEL_ACTIVITIES: frozenset[str] = frozenset({"fuel request", "fuel"})
