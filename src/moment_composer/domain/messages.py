"""Short user-facing notices shown on the device."""

TAKING_PHOTO = "Taking photo..."
BUTTON_PHOTO = "Button pressed, about to take photo"
CAPTURE_FAILED = "Failed to take photo"
STREAMING_ON = "Streaming photos: on"
STREAMING_OFF = "Streaming photos: off"

STARTING_SHOPPING = "Starting shopping session..."
PROCESSING_CALENDAR = "Processing your calendar request"
PROCESSING_EMAIL = "Processing your email request"

AUTH_REQUIRED = "Please authorize Google access from your dashboard."
NOT_CONFIGURED = "This feature is not configured."
SHOPPING_UNAVAILABLE = "Shopping not available. Please configure shopping credentials."
RATE_LIMITED = "Rate limit reached. Please try again later."
TIMED_OUT = "The request timed out. Please try again."
ACTION_FAILED = "Sorry, that request failed."
