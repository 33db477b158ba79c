"""Environment-based configuration for the DevSecOps dashboard API.

Every setting can be overridden with a ``DEVSECOPS_``-prefixed environment
variable (or a ``.env`` file), e.g. ``DEVSECOPS_LOG_LEVEL=DEBUG``.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    project_name: str = "DevSecOps Dashboard API"
    version: str = "1.0.0"
    log_level: str = "INFO"

    # Server (used by ``devsecops_api.main.run``)
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS origins, comma-separated. "*" allows any origin.
    cors_origins: str = "*"

    # Keep the pre-rename routes (/api/metrics, /api/pipeline/..., /api/quality)
    # for dashboards that still poll them.
    enable_legacy_routes: bool = True

    # Load the sample pipeline, findings and metrics at startup.
    seed_sample_data: bool = True

    model_config = SettingsConfigDict(env_prefix="DEVSECOPS_", env_file=".env", extra="ignore")

    @property
    def cors_origin_list(self) -> list[str]:
        origins = [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        return origins or ["*"]


settings = Settings()
