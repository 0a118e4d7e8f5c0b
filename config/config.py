import os


def _flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes"}


class Config:
    JWT_SECRET = os.environ.get("JWT_SECRET", "")
    JWT_EXPIRES_HOURS = int(os.environ.get("JWT_EXPIRES_HOURS", "24"))

    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "qr_attendance")

    FIREBASE_CREDENTIALS = os.environ.get("FIREBASE_CREDENTIALS") or None
    PORT = int(os.environ.get("PORT", "3000"))
    QR_PREFIX = os.environ.get("QR_PREFIX", "QR")
    NOTIFY_WORKERS = int(os.environ.get("NOTIFY_WORKERS", "2"))

    AUTO_INIT_DB = _flag("AUTO_INIT_DB")
    AUTO_SEED_DB = _flag("AUTO_SEED_DB")
    SEED_ADMIN_EMAIL = os.environ.get("SEED_ADMIN_EMAIL", "admin@empresa.com")
    SEED_ADMIN_PASSWORD = os.environ.get("SEED_ADMIN_PASSWORD", "admin123")


DB_CONFIG = {
    "host": Config.DB_HOST,
    "port": Config.DB_PORT,
    "user": Config.DB_USER,
    "password": Config.DB_PASSWORD,
    "database": Config.DB_NAME,
}

JWT_SECRET = Config.JWT_SECRET
JWT_EXPIRES_HOURS = Config.JWT_EXPIRES_HOURS
FIREBASE_CREDENTIALS = Config.FIREBASE_CREDENTIALS
PORT = Config.PORT
QR_PREFIX = Config.QR_PREFIX
NOTIFY_WORKERS = Config.NOTIFY_WORKERS

DEBUG = _flag("DEBUG", "0")

AUTO_INIT_DB = Config.AUTO_INIT_DB
AUTO_SEED_DB = Config.AUTO_SEED_DB
SEED_ADMIN_EMAIL = Config.SEED_ADMIN_EMAIL
SEED_ADMIN_PASSWORD = Config.SEED_ADMIN_PASSWORD
