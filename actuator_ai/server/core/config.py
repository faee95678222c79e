"""
Configuration Settings.

This module defines the application configuration using Pydantic's BaseSettings.
It automatically loads all configuration from environment variables and .env file
without explicit dotenv loading.

Flat fields on ``Settings`` carry the environment variable names as aliases;
the grouped configuration models below reuse the same aliases and are built
from ``Settings.model_dump(by_alias=True)``.
"""

from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# =====================================================================
# Grouped Configuration Models
# =====================================================================


class LLMConfig(BaseModel):
    """OpenAI-compatible language-model endpoint configuration."""

    base_url: str = Field(
        default="http://localhost:1234/v1", alias="LLM_BASE_URL", description="Base URL of the chat completion API"
    )
    api_key: Optional[str] = Field(default=None, alias="LLM_API_KEY", description="Bearer token for the API")
    model: str = Field(default="local-model", alias="LLM_MODEL", description="Chat model name")
    embedding_model: Optional[str] = Field(
        default=None, alias="LLM_EMBEDDING_MODEL", description="Embedding model name (defaults to the chat model)"
    )
    timeout_seconds: float = Field(default=60.0, alias="LLM_TIMEOUT_SECONDS", description="HTTP timeout per request")

    model_config = {"populate_by_name": True}


class SandboxSettings(BaseModel):
    """Sandbox configuration."""

    use_isolated_runtime: bool = Field(
        default=False, alias="SANDBOX_USE_ISOLATED_RUNTIME", description="Run commands in a docker container"
    )
    isolated_image: str = Field(
        default="actuator-sandbox:latest", alias="SANDBOX_ISOLATED_IMAGE", description="Container image for sandboxing"
    )
    timeout_ms: int = Field(default=30_000, alias="SANDBOX_TIMEOUT_MS", description="Default wall-clock limit")
    memory_limit_mb: int = Field(default=256, alias="SANDBOX_MEMORY_LIMIT_MB", description="Container memory ceiling")
    cpu_limit: float = Field(default=1.0, alias="SANDBOX_CPU_LIMIT", description="Container CPU ceiling")

    model_config = {"populate_by_name": True}


class AutonomySettings(BaseModel):
    """Autonomy policy and confirmation configuration."""

    learned_approval_threshold: int = Field(
        default=3,
        alias="AUTONOMY_LEARNED_APPROVAL_THRESHOLD",
        description="Approvals in a matching context before a pattern counts as learned",
    )
    low_confidence_threshold: float = Field(
        default=0.5,
        alias="AUTONOMY_LOW_CONFIDENCE_THRESHOLD",
        description="Intent confidence below which detailed confirmation is required",
    )
    confirmation_ttl_seconds: int = Field(
        default=120, alias="AUTONOMY_CONFIRMATION_TTL_SECONDS", description="Lifetime of a pending confirmation"
    )
    sweep_interval_seconds: float = Field(
        default=30.0, alias="CONFIRMATION_SWEEP_INTERVAL_SECONDS", description="Expired confirmation sweep interval"
    )

    model_config = {"populate_by_name": True}


class EmailConfig(BaseModel):
    """Mail API configuration."""

    api_url: Optional[str] = Field(default=None, alias="EMAIL_API_URL", description="Base URL of the mail REST API")
    api_token: Optional[str] = Field(default=None, alias="EMAIL_API_TOKEN", description="Bearer token for the mail API")
    sender: Optional[str] = Field(default=None, alias="EMAIL_SENDER", description="Sender address for outgoing mail")

    model_config = {"populate_by_name": True}


class HomeAssistantConfig(BaseModel):
    """Home Assistant configuration."""

    url: Optional[str] = Field(default=None, alias="HOME_ASSISTANT_URL", description="Home Assistant base URL")
    token: Optional[str] = Field(
        default=None, alias="HOME_ASSISTANT_TOKEN", description="Long-lived Home Assistant access token"
    )

    model_config = {"populate_by_name": True}


class SmsConfig(BaseModel):
    """SMS provider configuration."""

    api_url: Optional[str] = Field(default=None, alias="SMS_API_URL", description="Base URL of the SMS REST API")
    account_sid: Optional[str] = Field(default=None, alias="SMS_ACCOUNT_SID", description="SMS account identifier")
    auth_token: Optional[str] = Field(default=None, alias="SMS_AUTH_TOKEN", description="SMS account auth token")
    from_number: Optional[str] = Field(default=None, alias="SMS_FROM_NUMBER", description="Sending phone number")

    model_config = {"populate_by_name": True}


class MediaConfig(BaseModel):
    """Music playback configuration."""

    api_url: Optional[str] = Field(default=None, alias="MEDIA_API_URL", description="Base URL of the playback API")
    access_token: Optional[str] = Field(
        default=None, alias="MEDIA_ACCESS_TOKEN", description="OAuth access token for the playback API"
    )

    model_config = {"populate_by_name": True}


class CORSConfig(BaseModel):
    """CORS configuration."""

    origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS", description="Allowed CORS origins (use * for all)")
    allow_credentials: bool = Field(
        default=True, alias="CORS_ALLOW_CREDENTIALS", description="Allow credentials in CORS requests"
    )

    model_config = {"populate_by_name": True}


# =====================================================================
# Main Settings Class
# =====================================================================


class Settings(BaseSettings):
    """
    Application settings model.

    All properties are automatically bound from environment variables and .env file.
    Pydantic's BaseSettings handles dotenv loading automatically via model_config.
    """

    # =====================================================================
    # Pydantic Configuration
    # =====================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
        populate_by_name=True,
    )

    # =====================================================================
    # Actuator-AI Server Configuration
    # =====================================================================
    server_host: str = Field(
        default="0.0.0.0",
        description="Actuator-AI server host address to bind to",
        alias="ACTUATOR_AI_SERVER_HOST",
    )
    server_port: int = Field(
        default=8000,
        description="Actuator-AI server port number",
        alias="ACTUATOR_AI_SERVER_PORT",
    )

    # =====================================================================
    # Logging Configuration
    # =====================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="ACTUATOR_AI_LOG_LEVEL",
    )
    log_format: str = Field(default="detailed", description="simple, detailed or json", alias="LOG_FORMAT")
    log_file_dir: str = Field(default="logs", description="Directory for log files", alias="LOG_FILE_DIR")
    enable_file_logging: bool = Field(
        default=False, description="Also write logs to files", alias="ENABLE_FILE_LOGGING"
    )

    # =====================================================================
    # Database Configuration
    # =====================================================================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./actuator_ai.db",
        description="Async SQLAlchemy URL; Postgres URLs are normalized to asyncpg",
        alias="DATABASE_URL",
    )

    # =====================================================================
    # Language Model
    # =====================================================================
    llm_base_url: str = Field(default="http://localhost:1234/v1", alias="LLM_BASE_URL")
    llm_api_key: Optional[str] = Field(default=None, alias="LLM_API_KEY")
    llm_model: str = Field(default="local-model", alias="LLM_MODEL")
    llm_embedding_model: Optional[str] = Field(default=None, alias="LLM_EMBEDDING_MODEL")
    llm_timeout_seconds: float = Field(default=60.0, alias="LLM_TIMEOUT_SECONDS")

    # =====================================================================
    # Sandbox
    # =====================================================================
    sandbox_use_isolated_runtime: bool = Field(default=False, alias="SANDBOX_USE_ISOLATED_RUNTIME")
    sandbox_isolated_image: str = Field(default="actuator-sandbox:latest", alias="SANDBOX_ISOLATED_IMAGE")
    sandbox_timeout_ms: int = Field(default=30_000, alias="SANDBOX_TIMEOUT_MS")
    sandbox_memory_limit_mb: int = Field(default=256, alias="SANDBOX_MEMORY_LIMIT_MB")
    sandbox_cpu_limit: float = Field(default=1.0, alias="SANDBOX_CPU_LIMIT")

    # =====================================================================
    # Autonomy and Confirmations
    # =====================================================================
    autonomy_learned_approval_threshold: int = Field(default=3, alias="AUTONOMY_LEARNED_APPROVAL_THRESHOLD")
    autonomy_low_confidence_threshold: float = Field(default=0.5, alias="AUTONOMY_LOW_CONFIDENCE_THRESHOLD")
    autonomy_confirmation_ttl_seconds: int = Field(default=120, alias="AUTONOMY_CONFIRMATION_TTL_SECONDS")
    confirmation_sweep_interval_seconds: float = Field(default=30.0, alias="CONFIRMATION_SWEEP_INTERVAL_SECONDS")

    # =====================================================================
    # Integrations
    # =====================================================================
    email_api_url: Optional[str] = Field(default=None, alias="EMAIL_API_URL")
    email_api_token: Optional[str] = Field(default=None, alias="EMAIL_API_TOKEN")
    email_sender: Optional[str] = Field(default=None, alias="EMAIL_SENDER")
    home_assistant_url: Optional[str] = Field(default=None, alias="HOME_ASSISTANT_URL")
    home_assistant_token: Optional[str] = Field(default=None, alias="HOME_ASSISTANT_TOKEN")
    sms_api_url: Optional[str] = Field(default=None, alias="SMS_API_URL")
    sms_account_sid: Optional[str] = Field(default=None, alias="SMS_ACCOUNT_SID")
    sms_auth_token: Optional[str] = Field(default=None, alias="SMS_AUTH_TOKEN")
    sms_from_number: Optional[str] = Field(default=None, alias="SMS_FROM_NUMBER")
    media_api_url: Optional[str] = Field(default=None, alias="MEDIA_API_URL")
    media_access_token: Optional[str] = Field(default=None, alias="MEDIA_ACCESS_TOKEN")

    # =====================================================================
    # CORS
    # =====================================================================
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    # =====================================================================
    # Computed Properties (Grouped Configurations)
    # =====================================================================

    @property
    def llm(self) -> LLMConfig:
        """Get language-model configuration from environment variables."""
        return LLMConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def sandbox(self) -> SandboxSettings:
        """Get sandbox configuration from environment variables."""
        return SandboxSettings.model_validate(self.model_dump(by_alias=True))

    @property
    def autonomy(self) -> AutonomySettings:
        """Get autonomy configuration from environment variables."""
        return AutonomySettings.model_validate(self.model_dump(by_alias=True))

    @property
    def email(self) -> EmailConfig:
        """Get mail API configuration from environment variables."""
        return EmailConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def home_assistant(self) -> HomeAssistantConfig:
        """Get Home Assistant configuration from environment variables."""
        return HomeAssistantConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def sms(self) -> SmsConfig:
        """Get SMS provider configuration from environment variables."""
        return SmsConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def media(self) -> MediaConfig:
        """Get music playback configuration from environment variables."""
        return MediaConfig.model_validate(self.model_dump(by_alias=True))

    @property
    def cors(self) -> CORSConfig:
        """Get CORS configuration from environment variables."""
        return CORSConfig.model_validate(self.model_dump(by_alias=True))


settings = Settings()
