import os

from . import settings

ENV_KEYS = (
    "JWT_SECRET",
    "CAMERA",
    "OBJECT_STORE_URL",
    "OBJECT_STORE_BUCKET",
    "MATCH_URL",
    "DIRECTORY_URL",
    "ACCOUNT_DB_PATH",
)


def load_env_config(env_path='.env.local'):
    """Defaults from settings, overridden by .env.local, overridden by the environment"""
    config = {
        "JWT_SECRET": "",
        "CAMERA": settings.CAMERA_DEFAULT,
        "OBJECT_STORE_URL": settings.OBJECT_STORE_URL,
        "OBJECT_STORE_BUCKET": settings.OBJECT_STORE_BUCKET,
        "MATCH_URL": settings.MATCH_URL,
        "DIRECTORY_URL": settings.DIRECTORY_URL,
        "ACCOUNT_DB_PATH": settings.ACCOUNT_DB_PATH,
    }
    if os.path.exists(env_path):
        with open(env_path, 'r', encoding='utf-8') as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith('#'):
                    continue
                if '=' in line:
                    key, val = line.split('=', 1)
                    config[key.strip()] = val.strip().strip('"').strip("'")
    for key in ENV_KEYS:
        if os.environ.get(key):
            config[key] = os.environ[key]
    return config
