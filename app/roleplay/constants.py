MAX_REQUEST_BYTES = 2 * 1024 * 1024  # transcripts and histories are text only
DEFAULT_HISTORY_LIMIT = 10
MAX_HISTORY_LIMIT = 100
UNSET = object()
