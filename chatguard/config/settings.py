from loguru import logger
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CHAT_MODEL = "mlx-community/gpt-oss-20b-MXFP4-Q8"


class Settings(BaseSettings):
    # Admission control
    chat_max_rpm_per_ip: int = Field(default=2, validation_alias="CHAT_MAX_RPM_PER_IP")
    chat_daily_budget: int = Field(default=150, validation_alias="CHAT_DAILY_BUDGET")
    chat_max_messages: int = Field(default=10, validation_alias="CHAT_MAX_MESSAGES")
    rate_limits_disabled: bool = Field(
        default=False,
        validation_alias="RATE_LIMITS_DISABLED",
        description="Kill-switch: bypass every admission limit without a redeploy",
    )

    # Inference provider (OpenAI-compatible endpoint)
    inferencia_api_key: str = Field(default="", validation_alias="INFERENCIA_API_KEY", validate_default=True)
    inferencia_base_url: str = Field(default="", validation_alias="INFERENCIA_BASE_URL")
    inferencia_chat_model: str = Field(default=DEFAULT_CHAT_MODEL, validation_alias="INFERENCIA_CHAT_MODEL")

    # Shared secrets
    chat_eval_token: str = Field(default="", validation_alias="CHAT_EVAL_TOKEN")
    admin_secret: str = Field(default="", validation_alias="ADMIN_SECRET")

    # Optional session persistence; empty means "not configured"
    database_url: str = Field(default="", validation_alias="DATABASE_URL")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_json: bool = Field(
        default=False,
        validation_alias="LOG_JSON",
        description="Emit JSON lines on stdout for Cloud Logging ingestion",
    )

    google_cloud_project: str = Field(default="", validation_alias="GOOGLE_CLOUD_PROJECT")
    google_cloud_region: str = Field(default="us-east1", validation_alias="GOOGLE_CLOUD_REGION")
    app_version: str = Field(default="1.0.0", validation_alias="APP_VERSION")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate that log level is one of the standard logging levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in valid_levels:
            logger.warning(f"Invalid LOG_LEVEL '{value}'. Valid levels are: {', '.join(valid_levels)}. Defaulting to INFO.")
            return "INFO"
        return upper_value

    @field_validator("chat_max_rpm_per_ip", "chat_daily_budget", "chat_max_messages")
    @classmethod
    def validate_positive_limit(cls, value: int) -> int:
        if value < 1:
            logger.warning(f"Admission limits must be >= 1, got {value}. Using 1.")
            return 1
        return value

    @field_validator("inferencia_api_key")
    @classmethod
    def validate_inference_key(cls, value: str) -> str:
        """Warn when the inference credential is missing.

        A missing key is a degraded state (chat returns 503, health reports
        ``degraded``), never a startup failure.
        """
        if not value:
            logger.warning(
                "INFERENCIA_API_KEY is not set. Chat inference will be unavailable "
                "and /api/health will report a degraded inference_api check."
            )
        return value

    @property
    def persistence_configured(self) -> bool:
        return bool(self.database_url)


settings = Settings()
