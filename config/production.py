import os

from config.config import *  # noqa: F401,F403

JWT_SECRET = os.getenv("JWT_SECRET", "please-set-JWT_SECRET")

DEBUG = False

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
