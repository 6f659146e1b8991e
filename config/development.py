import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

# "mysql" or "memory" (process-local, data is lost on restart)
DB_BACKEND = os.getenv("DB_BACKEND", "mysql")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_system"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

# Face verification: a match needs distance strictly below the threshold
FACE_MATCH_THRESHOLD = float(os.getenv("FACE_MATCH_THRESHOLD", "0.6"))
DESCRIPTOR_LENGTH = 128
# Seconds between frames for server-attached cameras
FRAME_INTERVAL = float(os.getenv("FRAME_INTERVAL", "0.05"))
