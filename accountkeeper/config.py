"""Environment-driven configuration for accountkeeper."""

import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from accountkeeper.errors import ConfigurationError

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:3001",
    "http://localhost:8080",
]

MIN_PASSWORD_HASH_ROUNDS = 10
MAX_PASSWORD_HASH_ROUNDS = 31


@dataclass(frozen=True)
class Settings:
    """Runtime settings. The signing secret has no default."""

    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    jwt_expiration_hours: int = 168
    password_hash_rounds: int = 12
    host: str = "0.0.0.0"
    port: int = 8000
    allowed_origins: List[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))
    environment: str = "development"
    log_level: str = "INFO"


def _int_setting(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _split_origins(raw: Optional[str]) -> List[str]:
    if not raw:
        return list(DEFAULT_ALLOWED_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from the environment (or an explicit mapping).

    Args:
        env: Mapping to read from. Defaults to ``os.environ`` after loading ``.env``.

    Raises:
        ConfigurationError: If the signing secret is missing or a value is out of range.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    secret = (env.get("JWT_SECRET_KEY") or "").strip()
    if not secret:
        raise ConfigurationError("JWT_SECRET_KEY must be set; refusing to start without a signing secret")

    algorithm = (env.get("JWT_ALGORITHM") or "HS256").strip().upper()
    if not algorithm.startswith("HS"):
        raise ConfigurationError(f"JWT_ALGORITHM must be an HMAC algorithm (HS256/HS384/HS512), got {algorithm}")

    expiration_hours = _int_setting(env, "JWT_EXPIRATION_HOURS", 168)
    if expiration_hours <= 0:
        raise ConfigurationError("JWT_EXPIRATION_HOURS must be positive")

    rounds = _int_setting(env, "PASSWORD_HASH_ROUNDS", 12)
    if not MIN_PASSWORD_HASH_ROUNDS <= rounds <= MAX_PASSWORD_HASH_ROUNDS:
        raise ConfigurationError(
            f"PASSWORD_HASH_ROUNDS must be between {MIN_PASSWORD_HASH_ROUNDS} and {MAX_PASSWORD_HASH_ROUNDS}"
        )

    port = _int_setting(env, "PORT", 8000)
    if not 0 < port < 65536:
        raise ConfigurationError(f"PORT out of range: {port}")

    return Settings(
        jwt_secret_key=secret,
        jwt_algorithm=algorithm,
        jwt_expiration_hours=expiration_hours,
        password_hash_rounds=rounds,
        host=env.get("HOST") or "0.0.0.0",
        port=port,
        allowed_origins=_split_origins(env.get("ALLOWED_ORIGINS")),
        environment=env.get("ENVIRONMENT") or "development",
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
    )
