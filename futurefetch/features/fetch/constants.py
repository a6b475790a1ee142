"""HTTP constants for the fetch layer.

Centralizes all HTTP-related constants to avoid duplication across modules.
"""

# HTTP Status Code Ranges
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300
HTTP_STATUS_REDIRECT_MIN = 300
HTTP_STATUS_REDIRECT_MAX = 400

# Redirect-following hop cap
MAX_REDIRECTS = 10

# Chunk size for streaming request bodies
DEFAULT_CHUNK_SIZE = 8192

# Header set when the cache mode is not "default"
CACHE_CONTROL_HEADER = "Cache-Control"

# Reason phrase for status codes outside the standard registry
UNKNOWN_STATUS_TEXT = "Unknown Status Code"

DEFAULT_USER_AGENT = "futurefetch/1.0"
