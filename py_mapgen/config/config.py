from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MAPGEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (plain or json)")

    # Output Configuration
    output_dir: str = Field(default="./output", description="Directory for exported maps")

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Map Generation Limits
    max_map_width: int = Field(default=4096, description="Max allowed map width")
    max_map_height: int = Field(default=2048, description="Max allowed map height")

    # Performance Configuration
    max_concurrent_jobs: int = Field(default=2, description="Max concurrent generation jobs")


# Instantiate singleton settings object
settings = Settings()
