import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Loads .env from the project root
load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./adminauth.db")
ENV = os.getenv("ENV", "dev")
ENV_NORMALIZED = ENV.lower()
IS_DEV = ENV_NORMALIZED in {"dev", "development", "local"}
IS_TEST = ENV_NORMALIZED == "test"
IS_PROD = ENV_NORMALIZED in {"prod", "production"}
DEV_BOOTSTRAP_ALLOW = _env_flag("DEV_BOOTSTRAP_ALLOW", "")

# CORS
_cors_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS = [origin.strip() for origin in _cors_env.split(",") if origin.strip() and origin.strip() != "*"]

if not CORS_ORIGINS and IS_DEV:
    CORS_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

# Auth (JWT)
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "60"))

# Login throttling
LOGIN_MAX_FAILED_ATTEMPTS = int(os.getenv("LOGIN_MAX_FAILED_ATTEMPTS", "5"))
LOGIN_ATTEMPT_WINDOW_MINUTES = int(os.getenv("LOGIN_ATTEMPT_WINDOW_MINUTES", "15"))

# Registration
MAX_ADMIN_ACCOUNTS = int(os.getenv("MAX_ADMIN_ACCOUNTS", "4"))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))

# Password reset
RESET_TOKEN_LENGTH = int(os.getenv("RESET_TOKEN_LENGTH", "32"))
RESET_TOKEN_EXPIRE_MINUTES = int(os.getenv("RESET_TOKEN_EXPIRE_MINUTES", "60"))
RESET_TOKEN_REVOKE_PREVIOUS = _env_flag("RESET_TOKEN_REVOKE_PREVIOUS", "1")
RESET_PASSWORD_URL = os.getenv("RESET_PASSWORD_URL", "http://localhost:3000/reset-password").strip()

# Email (SMTP)
EMAIL_HOST = os.getenv("EMAIL_HOST", "").strip()
EMAIL_PORT = int(os.getenv("EMAIL_PORT", "587"))
EMAIL_SECURE = _env_flag("EMAIL_SECURE", "0")
EMAIL_USER = os.getenv("EMAIL_USER", "").strip()
EMAIL_PASS = os.getenv("EMAIL_PASS", "")
EMAIL_FROM = os.getenv("EMAIL_FROM", "").strip()
EMAIL_TIMEOUT_SECONDS = float(os.getenv("EMAIL_TIMEOUT_SECONDS", "10"))

_DEV_JWT_SECRET = "dev-only-insecure-secret"


@dataclass(frozen=True)
class AuthSettings:
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60
    max_failed_attempts: int = 5
    attempt_window_minutes: int = 15
    max_admin_accounts: int = 4
    bcrypt_rounds: int = 10
    reset_token_length: int = 32
    reset_token_expire_minutes: int = 60
    reset_token_revoke_previous: bool = True
    reset_password_url: str = "http://localhost:3000/reset-password"


def load_auth_settings() -> AuthSettings:
    """Snapshot of the auth-related environment, built once at startup."""
    secret = JWT_SECRET_KEY
    if not secret:
        if IS_PROD:
            raise RuntimeError("JWT_SECRET_KEY is not configured.")
        secret = _DEV_JWT_SECRET
    return AuthSettings(
        jwt_secret=secret,
        jwt_algorithm=JWT_ALGORITHM,
        jwt_expire_minutes=JWT_EXPIRE_MINUTES,
        max_failed_attempts=LOGIN_MAX_FAILED_ATTEMPTS,
        attempt_window_minutes=LOGIN_ATTEMPT_WINDOW_MINUTES,
        max_admin_accounts=MAX_ADMIN_ACCOUNTS,
        bcrypt_rounds=BCRYPT_ROUNDS,
        reset_token_length=RESET_TOKEN_LENGTH,
        reset_token_expire_minutes=RESET_TOKEN_EXPIRE_MINUTES,
        reset_token_revoke_previous=RESET_TOKEN_REVOKE_PREVIOUS,
        reset_password_url=RESET_PASSWORD_URL,
    )
