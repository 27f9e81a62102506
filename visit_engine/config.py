"""
Central configuration for the Visit Engine Service
"""

from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from enum import Enum


class Environment(str, Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class ModelName(str, Enum):
    GPT_4O_MINI = "gpt-4o-mini"
    GPT_4O = "gpt-4o"
    GPT_4_1_NANO = "gpt-4.1-nano"


class STTModel(str, Enum):
    WHISPER_1 = "whisper-1"
    GPT_4O_MINI_TRANSCRIBE = "gpt-4o-mini-transcribe"
    GPT_4O_TRANSCRIBE = "gpt-4o-transcribe"
    ASSEMBLYAI_UNIVERSAL = "assemblyai-universal"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Environment
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")

    # API Configuration
    api_title: str = Field(default="Visit Engine API")
    api_description: str = Field(default="Clinical visit transcription, summarization and medication safety service")
    api_version: str = Field(default="1.0.0")
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=3001)

    # External Service APIs
    openai_api_key: Optional[str] = Field(default=None)
    openai_organization: Optional[str] = Field(default=None)
    assemblyai_api_key: Optional[str] = Field(default=None)
    assemblyai_api_base_url: str = Field(default="https://api.assemblyai.com")

    # Rate Limiting
    rate_limit_requests: int = Field(default=10)
    rate_limit_window: int = Field(default=60)  # seconds

    # Audio Limits
    max_file_size_mb: int = Field(default=50)
    supported_audio_formats: List[str] = Field(
        default=[
            "audio/mpeg", "audio/mp3", "audio/wav", "audio/x-wav", "audio/mp4",
            "audio/m4a", "audio/x-m4a", "audio/ogg", "audio/webm",
        ]
    )
    temp_audio_dir: Optional[str] = Field(default=None)

    # Timeouts and Retries
    stt_timeout: float = Field(default=120.0)
    llm_timeout: float = Field(default=60.0)
    interaction_check_timeout: float = Field(default=30.0)
    max_retries: int = Field(default=3)

    # Transcription, tried in order until one succeeds
    transcription_models: List[str] = Field(
        default=[
            STTModel.WHISPER_1.value,
            STTModel.GPT_4O_MINI_TRANSCRIBE.value,
            STTModel.GPT_4O_TRANSCRIBE.value,
        ]
    )
    default_language: str = Field(default="en")
    supported_languages: List[str] = Field(
        default=["en", "de", "fr", "es", "it", "pt", "nl", "auto"]
    )

    # LLM Configuration
    summary_model: str = Field(default=ModelName.GPT_4O_MINI.value)
    interaction_model: str = Field(default=ModelName.GPT_4O_MINI.value)
    llm_temperature: float = Field(default=0.3)
    llm_max_tokens: int = Field(default=2000)

    # CORS Configuration
    cors_origins: List[str] = Field(default=["http://localhost:3000", "http://localhost:8080"])
    cors_allow_credentials: bool = Field(default=True)
    cors_allow_methods: List[str] = Field(default=["GET", "POST"])
    cors_allow_headers: List[str] = Field(default=["*"])

    # Monitoring
    enable_metrics: bool = Field(default=True)
    metrics_path: str = Field(default="/metrics")


# Global settings instance
settings = Settings()
