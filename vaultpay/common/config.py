"""Central environment-driven settings for the gateway process.

Values come from the environment or a local `.env` file (see `.env.example`).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


PAYPAL_API_HOSTS = {
    "sandbox": "https://api-m.sandbox.paypal.com",
    "live": "https://api-m.paypal.com",
}


class GatewaySettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "vaultpay-gateway"
    log_level: str = "INFO"
    paypal_client_id: str = ""
    paypal_client_secret: str = ""
    paypal_mode: str = "sandbox"
    http_timeout_seconds: float = 10.0
    idempotency_backend: str = "memory"
    idempotency_ttl_seconds: int = 3600
    idempotency_sweep_interval_seconds: int = 60
    redis_url: str = "redis://redis:6379/0"
    brand_name: str = "PayPal Vault Demo"
    locale: str = "ja-JP"
    default_currency: str = "JPY"
    default_description: str = "PayPal Vault test item"
    cors_origins: str = "*"
    otel_exporter_otlp_endpoint: str = ""
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def paypal_api_base(self) -> str:
        # Anything other than "sandbox" talks to the live host.
        return PAYPAL_API_HOSTS["sandbox" if self.paypal_mode == "sandbox" else "live"]

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = GatewaySettings()
