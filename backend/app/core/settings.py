import os


def _getenv(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None:
        return default
    value = value.strip()
    return value if value else default


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _getenv_float(name: str, default: float) -> float:
    raw = _getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


class Settings:
    def __init__(self) -> None:
        self.environment = (_getenv("ENVIRONMENT", "development") or "development").lower()
        self.log_level = (_getenv("LOG_LEVEL", "INFO") or "INFO").upper()

        self.supabase_url = _getenv("SUPABASE_URL") or _getenv("NEXT_PUBLIC_SUPABASE_URL")
        self.supabase_anon_key = _getenv("SUPABASE_ANON_KEY") or _getenv("NEXT_PUBLIC_SUPABASE_ANON_KEY")
        self.supabase_service_role_key = _getenv("SUPABASE_SERVICE_ROLE_KEY")
        self.supabase_jwt_audience = _getenv("SUPABASE_JWT_AUD", "authenticated")
        self.supabase_jwt_issuer = _getenv("SUPABASE_JWT_ISSUER")
        self.supabase_timeout_s = _getenv_float("SUPABASE_TIMEOUT_S", 8.0)
        self.role_cache_ttl_s = _getenv_int("ROLE_CACHE_TTL_S", 60)

        self.cors_allow_origins = _getenv("CORS_ALLOW_ORIGINS")

        self.import_rows_per_second = max(1, _getenv_int("IMPORT_ROWS_PER_SECOND", 100))
        self.import_max_upload_bytes = max(1, _getenv_int("IMPORT_MAX_UPLOAD_BYTES", 50 * 1024 * 1024))

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def supabase_rest_key(self) -> str | None:
        return self.supabase_service_role_key or self.supabase_anon_key

    def resolved_cors_origins(self) -> list[str]:
        raw = self.cors_allow_origins
        if raw is None:
            return ["http://localhost:3000", "http://localhost:8000"]
        if raw.strip() == "*":
            return ["*"]
        origins = [o.strip() for o in raw.split(",") if o.strip()]
        return origins


settings = Settings()
