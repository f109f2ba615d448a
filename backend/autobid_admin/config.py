import json
import os
import threading
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel, Field


load_dotenv()

ROUTE_DEFAULT_POLICIES = ("allow", "deny")
AUDIT_MODES = ("best_effort", "atomic")


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"{name} must be a boolean value")


def _parse_allowed_origins(raw_allowed_origins: str) -> list[str]:
    # Support both CSV format and JSON array format
    if raw_allowed_origins.startswith("["):
        try:
            parsed_list = json.loads(raw_allowed_origins)
        except json.JSONDecodeError as exc:
            raise ValueError(f"ALLOWED_ORIGINS JSON is malformed: {exc}") from exc
        if not isinstance(parsed_list, list):
            raise ValueError("ALLOWED_ORIGINS JSON must be an array")
        allowed_origins = [
            origin.strip() for origin in parsed_list if isinstance(origin, str) and origin.strip()
        ]
    else:
        allowed_origins = [
            origin.strip() for origin in raw_allowed_origins.split(",") if origin.strip()
        ]

    if not allowed_origins:
        raise ValueError("ALLOWED_ORIGINS must contain at least one origin")

    if "*" in allowed_origins:
        raise ValueError(
            "ALLOWED_ORIGINS cannot contain '*' when credentialed requests are used"
        )

    for origin in allowed_origins:
        parsed = urlparse(origin)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(
                "ALLOWED_ORIGINS must contain valid http/https origins with host"
            )
    return allowed_origins


class Settings(BaseModel):
    app_name: str = Field(default="AutoBid Admin")
    debug: bool = Field(default=False)
    database_url: str = Field(default="")
    redis_url: str = Field(default="redis://localhost:6379/0")
    allowed_origins: list[str] = Field(default_factory=list)
    db_pool_size: int = Field(default=5)
    db_max_overflow: int = Field(default=10)
    db_pool_recycle: int = Field(default=1800)
    db_pool_pre_ping: bool = Field(default=True)
    secret_key: str | None = Field(default=None)
    algorithm: str = Field(default="HS256")
    session_cookie_name: str = Field(default="autobid_admin_session")
    login_path: str = Field(default="/login")
    route_default_policy: str = Field(default="allow")
    audit_mode: str = Field(default="best_effort")
    monitor_refresh_seconds: float = Field(default=10.0)
    monitor_channel: str = Field(default="admin-monitoring")

    @classmethod
    def from_env(cls) -> "Settings":
        secret_key = os.getenv("SECRET_KEY", "").strip()
        if not secret_key:
            raise ValueError("SECRET_KEY environment variable must be set")

        raw_allowed_origins = os.getenv("ALLOWED_ORIGINS", "").strip()
        if not raw_allowed_origins:
            raise ValueError("ALLOWED_ORIGINS environment variable must be set")
        allowed_origins = _parse_allowed_origins(raw_allowed_origins)

        database_url = os.getenv("DATABASE_URL", "").strip()
        if not database_url:
            raise ValueError("DATABASE_URL environment variable must be set")

        parsed_db = urlparse(database_url)
        if parsed_db.scheme != "postgresql+asyncpg":
            raise ValueError("DATABASE_URL must start with 'postgresql+asyncpg://'")
        if not parsed_db.hostname:
            raise ValueError("DATABASE_URL must include hostname")

        db_pool_size = int(os.getenv("DB_POOL_SIZE", cls.model_fields["db_pool_size"].default))
        if db_pool_size <= 0:
            raise ValueError("DB_POOL_SIZE must be greater than 0")

        db_max_overflow = int(
            os.getenv("DB_MAX_OVERFLOW", cls.model_fields["db_max_overflow"].default)
        )
        if db_max_overflow < 0:
            raise ValueError("DB_MAX_OVERFLOW must be greater than or equal to 0")

        db_pool_recycle = int(
            os.getenv("DB_POOL_RECYCLE", cls.model_fields["db_pool_recycle"].default)
        )
        if db_pool_recycle <= 0:
            raise ValueError("DB_POOL_RECYCLE must be greater than 0")

        db_pool_pre_ping = _parse_bool(
            "DB_POOL_PRE_PING",
            os.getenv("DB_POOL_PRE_PING", str(cls.model_fields["db_pool_pre_ping"].default)),
        )

        route_default_policy = os.getenv(
            "ROUTE_DEFAULT_POLICY", cls.model_fields["route_default_policy"].default
        ).strip().lower()
        if route_default_policy not in ROUTE_DEFAULT_POLICIES:
            raise ValueError("ROUTE_DEFAULT_POLICY must be 'allow' or 'deny'")

        audit_mode = os.getenv("AUDIT_MODE", cls.model_fields["audit_mode"].default).strip().lower()
        if audit_mode not in AUDIT_MODES:
            raise ValueError("AUDIT_MODE must be 'best_effort' or 'atomic'")

        try:
            monitor_refresh_seconds = float(
                os.getenv(
                    "MONITOR_REFRESH_SECONDS",
                    cls.model_fields["monitor_refresh_seconds"].default,
                )
            )
        except ValueError as exc:
            raise ValueError("MONITOR_REFRESH_SECONDS must be a number") from exc
        if monitor_refresh_seconds <= 0:
            raise ValueError("MONITOR_REFRESH_SECONDS must be greater than 0")

        login_path = os.getenv("LOGIN_PATH", cls.model_fields["login_path"].default).strip()
        if not login_path.startswith("/"):
            raise ValueError("LOGIN_PATH must be an absolute path")

        return cls(
            app_name=os.getenv("APP_NAME", cls.model_fields["app_name"].default),
            debug=os.getenv("DEBUG", "false").lower() == "true",
            database_url=database_url,
            redis_url=os.getenv("REDIS_URL", cls.model_fields["redis_url"].default).strip(),
            allowed_origins=allowed_origins,
            secret_key=secret_key,
            algorithm=os.getenv("ALGORITHM", cls.model_fields["algorithm"].default),
            session_cookie_name=os.getenv(
                "SESSION_COOKIE_NAME", cls.model_fields["session_cookie_name"].default
            ),
            login_path=login_path,
            route_default_policy=route_default_policy,
            audit_mode=audit_mode,
            monitor_refresh_seconds=monitor_refresh_seconds,
            monitor_channel=os.getenv(
                "MONITOR_CHANNEL", cls.model_fields["monitor_channel"].default
            ),
            db_pool_size=db_pool_size,
            db_max_overflow=db_max_overflow,
            db_pool_recycle=db_pool_recycle,
            db_pool_pre_ping=db_pool_pre_ping,
        )


# Settings are built on first access so the package can be imported
# without a complete environment.
_settings_instance: Settings | None = None
_settings_lock = threading.Lock()


def get_settings() -> Settings:
    """Get settings instance, creating it on first access.

    Raises:
        ValueError: If required environment variables are missing or invalid
    """
    global _settings_instance

    if _settings_instance is not None:
        return _settings_instance

    with _settings_lock:
        if _settings_instance is None:
            _settings_instance = Settings.from_env()

    return _settings_instance


class _SettingsProxy:
    """Proxy to defer settings creation until first attribute access."""

    def __getattr__(self, name: str):
        return getattr(get_settings(), name)


settings = _SettingsProxy()  # type: ignore[assignment]
