# src/settings.py
import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # core
    APP_NAME: str = Field(default="ChromeMind")
    ENV: str = Field(default=os.getenv("APP_ENV", "dev"))
    DEBUG: bool = Field(default=True)
    LOG_LEVEL: str = Field(default="INFO")

    # local: GPT4All (priority 1)
    LOCAL_SERVER_URL: str = "http://localhost:4891/v1/completions"
    LOCAL_MODEL: str = "llama-3-8b-instruct"
    LOCAL_MAX_TOKENS: int = 300
    LOCAL_TEMPERATURE: float = 0.7
    USE_LOCAL_FIRST: bool = True

    # on-device (priority 2); runtime "" means capability absent
    USE_ON_DEVICE_MODEL: bool = False
    ON_DEVICE_RUNTIME: str = ""

    # cloud: HuggingFace (priority 3)
    HF_API_KEY: str | None = None
    HF_API_URL: str = "https://api-inference.huggingface.co/models/Qwen/Qwen2.5-7B-Instruct"
    HF_MODEL_ID: str = "Qwen/Qwen2.5-7B-Instruct"
    USE_CLOUD: bool = True

    TIMEOUT_MS: int = 30000
    MAX_RETRIES: int = 2
    BACKOFF_MS: int = 2000

    # read root-level .env.dev
    model_config = SettingsConfigDict(
        env_file=".env.dev",
        extra="ignore",
    )

    @property
    def app_name(self) -> str:
        return self.APP_NAME


settings = Settings()
