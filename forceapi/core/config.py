# forceapi/core/config.py
import os
from pydantic import AnyHttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional, Union
from dotenv import load_dotenv

# Load .env file
load_dotenv()

class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "ForceSObjectsAPI"
    APP_VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    DEBUG_MODE: bool = os.getenv("DEBUG_MODE", "False").lower() == "true"

    # Salesforce Configuration
    # The session token is issued elsewhere; this layer only presents it.
    SALESFORCE_INSTANCE_URL: Optional[str] = None
    SALESFORCE_ACCESS_TOKEN: Optional[str] = None
    SALESFORCE_API_VERSION: str = "v58.0" # Bulk insert needs v45.0+, bulk update/delete v43.0+
    SALESFORCE_REQUEST_TIMEOUT: float = 60.0

    # Server-imposed ceilings for the SObject Collections / Composite Tree resources
    SOBJECT_CREATE_BATCH_SIZE: int = 200
    SOBJECT_UPDATE_BATCH_SIZE: int = 200
    SOBJECT_DELETE_BATCH_SIZE: int = 200

    # Logging Configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FILENAME: Optional[str] = os.getenv("LOG_FILENAME")
    LOG_MAX_BYTES: int = 10 * 1024 * 1024
    LOG_BACKUP_COUNT: int = 5

    # CORS
    BACKEND_CORS_ORIGINS: List[AnyHttpUrl] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode='before')
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    @field_validator("SOBJECT_CREATE_BATCH_SIZE", "SOBJECT_UPDATE_BATCH_SIZE", "SOBJECT_DELETE_BATCH_SIZE")
    def batch_size_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("batch size must be a positive integer")
        return v

settings = Settings()
