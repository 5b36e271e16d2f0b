from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_host: str = "0.0.0.0"
    app_port: int = 4000
    env: str = "development"
    log_level: str = "INFO"

    database_url: str
    db_timeout: float = 10.0

    paystack_secret_key: str
    paystack_api_base: str = "https://api.paystack.co"
    # unset means every webhook is rejected
    paystack_webhook_secret: Optional[str] = None
    gateway_timeout: float = 15.0

    default_payer_email: str = "customer@example.com"
    currency: str = "NGN"

    allowed_origins: str = "http://localhost:3000"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


settings = Settings()
