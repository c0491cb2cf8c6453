"""Cart-wide constants and configuration defaults."""

# ============== STORAGE ==============
# Single key holding the whole serialized cart list
DEFAULT_STORAGE_KEY = "@GoMarketplace:products"
DEFAULT_CART_TTL_SECONDS = 0  # 0 = never expire

# ============== QUANTITY ==============
MIN_QUANTITY = 1

# ============== PERSISTENCE RETRY ==============
DEFAULT_STORAGE_RETRIES = 3
DEFAULT_RETRY_DELAY_SECONDS = 0.1
MAX_RETRY_DELAY_SECONDS = 5.0
RETRY_BACKOFF_BASE = 2.0

# ============== REDIS ==============
REDIS_SOCKET_TIMEOUT_SECONDS = 5
