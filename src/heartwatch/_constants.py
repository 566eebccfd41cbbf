"""Internal constants shared across the library."""

DEFAULT_HTTP_URL = "https://server-toza.onrender.com/api/watch-data"
DEFAULT_SOCKET_URL = "https://server-toza.onrender.com"
USER_AGENT = "heartwatch/1.0"

#: Unit the sensor reports heart rate in.
HEART_RATE_UNIT = "count/min"

# Socket.IO event names
EVENT_WATCHDATA = "watchdata"
EVENT_WATCHDATA_SAVED = "watchdataSaved"
EVENT_ERROR = "error"

SINK_HTTP = "http"
SINK_SOCKET = "socket"
SINK_KINDS: frozenset[str] = frozenset({SINK_HTTP, SINK_SOCKET})
