"""Constants used throughout the notification client."""

# HTTP Headers
AUTHORIZATION_HEADER = "Authorization"
BEARER_PREFIX = "Bearer"
JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}

# Service name used in client logs and errors
API_SERVICE_NAME = "project-catalog-api"

# STOMP protocol
STOMP_ACCEPT_VERSION = "1.2"
STOMP_SUBSCRIPTION_PREFIX = "sub-"
STOMP_RECEIPT_PREFIX = "receipt-"
STOMP_EOL = "\n"
STOMP_NULL = "\x00"

# Incoming silence tolerated before the transport is considered dead,
# as a multiple of the negotiated server heart-beat
HEARTBEAT_GRACE_FACTOR = 2.0
