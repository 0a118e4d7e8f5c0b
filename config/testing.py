from config.config import *  # noqa: F401,F403

JWT_SECRET = "test-jwt-secret"

FIREBASE_CREDENTIALS = None

DEBUG = False
TESTING = True

AUTO_INIT_DB = False
AUTO_SEED_DB = False
