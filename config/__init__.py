"""
Configuration package for Face Attendance Kiosk
"""

from .settings import *
from .liveness import *
from .env import load_env_config

__all__ = [
    # Camera
    'CAMERA_DEFAULT',
    'CAMERA_FPS',
    'FRAME_WIDTH',
    'FRAME_HEIGHT',
    'JPEG_QUALITY',

    # Cycle timing
    'CYCLE_DELAY',
    'AUTH_HOLD',

    # Face screening
    'PRESENCE_INPUT_SIZE',
    'PRESENCE_CONFIDENCE',
    'LANDMARK_CONFIDENCE',

    # Liveness
    'EYE_OPEN_THRESHOLD',
    'BLINK_DELAY',
    'BLINK_MAX_AGE',
    'LEFT_EYE_IDX',
    'RIGHT_EYE_IDX',

    # Remote services
    'OBJECT_STORE_URL',
    'OBJECT_STORE_BUCKET',
    'MATCH_URL',
    'DIRECTORY_URL',
    'HTTP_TIMEOUT',

    # Auth
    'TOKEN_TTL',
    'TOKEN_ALGORITHM',
    'PUBLIC_ROUTES',
    'GUARDED_ROUTES',
    'LOGIN_ROUTE',

    # Paths
    'ACCOUNT_DB_PATH',

    # Speech
    'SPEECH_QUEUE_SIZE',
    'SPEECH_TIMEOUT',
    'SPEECH_CLOSE_TIMEOUT',

    # Logging
    'LOG_LEVEL',
    'LOG_FORMAT',

    'load_env_config',
]
