from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "InterviewPro AI API"
    app_version: str = "2.1.0"
    environment: str = "production"

    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    chat_model: str = "gpt-4o"
    tts_model: str = "tts-1"
    temperature: float = 0.7

    # Transport budget for each upstream call
    upstream_timeout: float = 30.0
    upstream_max_retries: int = 1
    # Whole-request deadline, upstream waits included
    request_timeout: float = 120.0

    api_secret: str | None = None
    allowed_origins: str = ""
    trust_proxy: bool = True

    api_rate_limit: int = 100
    api_rate_window: int = 15 * 60
    ai_rate_limit: int = 20
    ai_rate_window: int = 60
    tts_rate_limit: int = 30
    tts_rate_window: int = 60

    expose_error_details: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    class Config:
        env_file = ".env"

    def cors_origins(self) -> list[str]:
        origins = [o.strip() for o in self.allowed_origins.split(",") if o.strip()]
        return origins or ["*"]

    def show_error_details(self) -> bool:
        return self.expose_error_details and self.environment.lower() != "production"


settings = Settings()
