from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"
    BUSINESS_TIMEZONE: str = "Europe/London"

    PLAN_STORE_DIR: str = "./data/plans"
    SUPPLIER_DATA_FILE: str = "./data/suppliers.json"

    ENQUIRY_API_KEY: str | None = None
    ENQUIRY_API_BASE_URL: str = "http://localhost:8080/api"
    HTTP_TIMEOUT_SECONDS: float = 10.0

    DEFAULT_GUEST_COUNT: int = 10
    STANDARD_PARTY_HOURS: float = 2.0


settings = Settings()
