import os

SECRET_KEY = "test-secret"

DB_BACKEND = os.getenv("DB_BACKEND", "memory")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_system_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False

FACE_MATCH_THRESHOLD = 0.6
DESCRIPTOR_LENGTH = 128
FRAME_INTERVAL = 0.01
