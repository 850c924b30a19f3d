# catalog_admin/config/settings.py
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Catalog Admin Service"
    API_PREFIX: str = "/api/admin"
    ENVIRONMENT: str = "development"

    # MongoDB Settings
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "catalog"

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    RECENTLY_VIEWED_LIMIT: int = 20

    # 시작 시 샘플 카테고리 트리 생성 여부
    SEED_SAMPLE_DATA: bool = False

    LOG_LEVEL: str = "INFO"

    # OpenTelemetry Settings
    OTEL_ENABLED: bool = False
    OTEL_SERVICE_NAME: str = "catalog-admin-service"
    OTEL_EXPORTER_OTLP_ENDPOINT: str = "http://otel-collector:4317"

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")


settings = Settings()
