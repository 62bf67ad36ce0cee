"""Configuration management using Pydantic settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from CANOPY_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CANOPY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "canopy-gis"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # PostgREST / Supabase data source
    postgrest_url: str = "http://localhost:54321"
    postgrest_key: str = ""
    http_timeout: float = 30.0

    # Initial map view (Buenos Aires province)
    map_center_lat: float = -36.67
    map_center_lng: float = -60.56
    map_zoom: int = 6
    map_tiles: str = "OpenStreetMap"

    # Bounds fitting after a project loads
    fit_padding: int = 20
    fit_max_zoom: int = 18

    # Tree layer clustering
    clustering_enabled: bool = True
    disable_clustering_at_zoom: int = 18


settings = Settings()
