"""
Global settings for Face Attendance Kiosk
"""

# ============================================================================
# CAMERA SETTINGS
# ============================================================================
CAMERA_DEFAULT = "0"
CAMERA_FPS = 30
FRAME_WIDTH = 640
FRAME_HEIGHT = 480
JPEG_QUALITY = 90

# ============================================================================
# CYCLE TIMING (seconds)
# ============================================================================
CYCLE_DELAY = 5.0  # Pause after a cycle completes before the next one starts
AUTH_HOLD = 10.0  # How long an authenticated result stays authenticated

# ============================================================================
# FACE SCREENING
# ============================================================================
PRESENCE_INPUT_SIZE = 128  # Longest side of the frame fed to the fast detector
PRESENCE_CONFIDENCE = 0.5
LANDMARK_CONFIDENCE = 0.5

# ============================================================================
# REMOTE SERVICES
# ============================================================================
OBJECT_STORE_URL = "https://iti80r2th2.execute-api.us-east-1.amazonaws.com/dev"
OBJECT_STORE_BUCKET = "fixhr-visitor-images"
MATCH_URL = "https://iti80r2th2.execute-api.us-east-1.amazonaws.com/dev"
DIRECTORY_URL = "https://web.fixhr.app/api/face-detection"
HTTP_TIMEOUT = 15.0

# ============================================================================
# AUTH
# ============================================================================
TOKEN_TTL = 86400  # 1 day
TOKEN_ALGORITHM = "HS256"
PUBLIC_ROUTES = ["/login", "/signup", "/api/auth/login", "/api/auth/signup"]
GUARDED_ROUTES = ["/", "/api/session"]
LOGIN_ROUTE = "/login"

# ============================================================================
# DATABASE PATHS
# ============================================================================
ACCOUNT_DB_PATH = 'data/accounts.json'

# ============================================================================
# SPEECH
# ============================================================================
SPEECH_QUEUE_SIZE = 10
SPEECH_TIMEOUT = 15.0  # Longest a single utterance may take before the backend is killed
SPEECH_CLOSE_TIMEOUT = 2.0

# ============================================================================
# LOGGING
# ============================================================================
LOG_LEVEL = 'INFO'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
