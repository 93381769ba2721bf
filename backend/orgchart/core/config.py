import sys

from pydantic_settings import BaseSettings

_ENV_FILE = None if "pytest" in sys.modules else ".env"


class Settings(BaseSettings):
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    COSMOS_DB_ENDPOINT: str = ""
    COSMOS_DB_KEY: str = ""
    COSMOS_DB_DATABASE: str = "orgchart-db"
    COSMOS_DB_EMPLOYEES_CONTAINER: str = "employees"

    N8N_WEBHOOK_URL: str = ""
    SLACK_WEBHOOK_URL: str = ""
    NOTIFICATION_TIMEOUT_SECONDS: int = 15
    NOTIFICATION_SOURCE: str = "orgchart_app"

    STAGING_FILE: str = ""
    DEFAULT_SITE: str = "Austin"

    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    model_config = {
        "env_file": _ENV_FILE,
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }


settings = Settings()
