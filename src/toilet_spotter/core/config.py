"""Runtime settings for the API server and the CLI.

Values come from environment variables (or a local ``.env`` file) and are
validated once when :class:`Settings` is built.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_STORE_BACKENDS = ("sql", "supabase", "memory")
_LOCATION_PROVIDERS = ("ip", "static")


class Settings(BaseSettings):
    """Every tunable of Toilet Spotter, one environment variable per field."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./toilet_spotter.db",
        description="SQLAlchemy async connection string used by the sql store backend",
    )

    # Remote store
    store_backend: str = Field(
        default="sql",
        description="Code store backend: sql, supabase or memory",
    )

    @field_validator("store_backend")
    @classmethod
    def validate_store_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in _STORE_BACKENDS:
            msg = f"store_backend must be one of {', '.join(_STORE_BACKENDS)}"
            raise ValueError(msg)
        return v

    supabase_url: str | None = Field(
        default=None,
        description="Supabase project URL (e.g. https://xyz.supabase.co)",
    )
    supabase_anon_key: str | None = Field(
        default=None,
        description="Supabase anonymous API key",
    )
    supabase_timeout: float = Field(
        default=10.0,
        description="Supabase request timeout in seconds",
        gt=0,
    )

    # Nearby search
    search_radius_meters: float = Field(
        default=1000.0,
        description="Default radius for nearby code queries",
        gt=0,
    )
    duplicate_check_mode: str = Field(
        default="advisory",
        description="advisory: a failed duplicate check lets the insert through; strict: it fails the insert",
    )

    @field_validator("duplicate_check_mode")
    @classmethod
    def validate_duplicate_check_mode(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("advisory", "strict"):
            msg = "duplicate_check_mode must be 'advisory' or 'strict'"
            raise ValueError(msg)
        return v

    # Device identity
    device_id_path: str = Field(
        default="~/.toilet_spotter/device_id",
        description="File holding this installation's anonymous device identifier",
    )

    # Location
    location_provider: str = Field(
        default="ip",
        description="Location provider used by the CLI: ip or static",
    )

    @field_validator("location_provider")
    @classmethod
    def validate_location_provider(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in _LOCATION_PROVIDERS:
            msg = f"location_provider must be one of {', '.join(_LOCATION_PROVIDERS)}"
            raise ValueError(msg)
        return v

    location_latitude: float | None = Field(
        default=None,
        description="Fixed latitude for the static location provider",
        ge=-90,
        le=90,
    )
    location_longitude: float | None = Field(
        default=None,
        description="Fixed longitude for the static location provider",
        ge=-180,
        le=180,
    )
    location_consent: bool = Field(
        default=True,
        description="Whether the user allows looking up their position",
    )
    location_timeout: float = Field(
        default=15.0,
        description="Location lookup timeout in seconds",
        gt=0,
    )
    ip_geolocation_url: str = Field(
        default="http://ip-api.com/json",
        description="IP geolocation endpoint returning status/lat/lon JSON",
    )

    # Map
    fallback_latitude: float = Field(
        default=37.7749,
        description="Map center used when the position cannot be determined",
        ge=-90,
        le=90,
    )
    fallback_longitude: float = Field(
        default=-122.4194,
        description="Map center used when the position cannot be determined",
        ge=-180,
        le=180,
    )
    map_span_degrees: float = Field(
        default=0.02,
        description="Width and height of the map viewport in degrees",
        gt=0,
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum log level for every sink",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for toilet-spotter.log; unset disables file logging",
    )
    log_json: bool = Field(
        default=False,
        description="Emit console logs as serialized JSON records",
    )

    # Rate limiting
    write_rate_limit_per_minute: int = Field(
        default=30,
        description="Maximum code submissions and votes per device per minute",
        gt=0,
    )

    # CORS
    cors_origins: str = Field(
        default="",
        description="Comma-separated browser origins allowed to call the API; empty allows none",
    )

    # Environment
    environment: str = Field(
        default="production",
        description="Deployment name reported by the health endpoint",
    )

    # API
    api_v1_prefix: str = Field(
        default="/api/v1",
        description="API version prefix",
    )

    @property
    def cors_origin_list(self) -> list[str]:
        """``CORS_ORIGINS`` split on commas, blanks dropped."""
        if not self.cors_origins.strip():
            return []
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


def get_settings() -> Settings:
    """Build settings from the current environment.

    Not cached: CLI invocations and tests change the environment between calls.
    """
    return Settings()
