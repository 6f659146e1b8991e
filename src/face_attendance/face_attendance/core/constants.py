"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_FACE_MATCH_THRESHOLD = 0.6
DESCRIPTOR_LENGTH = 128
DEFAULT_FRAME_INTERVAL = 0.05
DEFAULT_LOG_LIMIT = 500

MEMBER_ID_PATTERN = r"^[0-9]{4}-[0-9]{4}$"

STATUS_AWAITING_SCAN = "Please scan your QR code..."
STATUS_UNKNOWN_MEMBER = "Unknown member. Please enroll first or scan again."
STATUS_NO_FACE = "No face detected. Please look at the camera."
STATUS_MISMATCH = "Face mismatch. Please ensure you are the registered member."
