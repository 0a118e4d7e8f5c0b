import os

from config.config import *  # noqa: F401,F403

JWT_SECRET = os.getenv("JWT_SECRET", "dev-jwt-secret")

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: seed the default admin and organization-wide schedule
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "1")))
