# backend/clamio/config.py
from __future__ import annotations
import os


def _database_uri() -> str:
    explicit = os.environ.get("DATABASE_URL")
    if explicit:
        return explicit

    host = os.environ.get("DB_HOST")
    if not host:
        # SQLite DB stored in backend/instance/clamio.sqlite3
        return "sqlite:///clamio.sqlite3"

    user = os.environ.get("DB_USER", "root")
    password = os.environ.get("DB_PASSWORD", "")
    name = os.environ.get("DB_NAME", "clamio")
    port = os.environ.get("DB_PORT", "3306")
    uri = f"mysql+pymysql://{user}:{password}@{host}:{port}/{name}?charset=utf8mb4"
    if os.environ.get("DB_SSL", "false").lower() == "true":
        uri += "&ssl_verify_cert=true"
    return uri


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = _database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # NODE_ENV kept for deployments that still export it
    ENVIRONMENT = os.environ.get("APP_ENV") or os.environ.get("NODE_ENV", "production")
    PORT = int(os.environ.get("PORT", "5000"))
    CORS_ORIGIN = os.environ.get("CORS_ORIGIN", "http://localhost:3000")

    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Sliding window applied to every /api/auth route, per client IP
    AUTH_RATE_LIMIT_MAX = int(os.environ.get("AUTH_RATE_LIMIT_MAX", "20"))
    AUTH_RATE_LIMIT_WINDOW_SECONDS = int(os.environ.get("AUTH_RATE_LIMIT_WINDOW_SECONDS", "900"))

    PAYMENT_PROOF_FOLDER = os.environ.get("PAYMENT_PROOF_FOLDER", "instance/payment-proofs")
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024

    NOTIFICATION_RETENTION_DAYS = int(os.environ.get("NOTIFICATION_RETENTION_DAYS", "90"))

    DEFAULT_SUPERADMIN_EMAIL = os.environ.get("DEFAULT_SUPERADMIN_EMAIL", "superadmin@clamio.local")
    DEFAULT_SUPERADMIN_PASSWORD = os.environ.get("DEFAULT_SUPERADMIN_PASSWORD", "Password123")

    APP_VERSION = "1.0.0"
