"""
Centralized configuration with environment variable overrides.

Company details, adviser availability, model settings, speech voices and
dialogue thresholds are all configurable here. Nothing is hardcoded in
the dialogue or tool logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from super_assistant.logging_context import install_session_filter

load_dotenv()

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] [%(session_id)s] %(levelname)s: %(message)s"


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _csv_tuple(env_var: str, default: str) -> tuple[str, ...]:
    """Split a comma-separated env var into a tuple of trimmed, non-empty items."""
    raw = os.getenv(env_var, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class AssistantConfig:
    """Company, fund and adviser settings used in prompts and forms."""

    company_name: str = os.getenv("COMPANY_NAME", "Harbour Super")
    fund_name: str = os.getenv("FUND_NAME", "Harbour Super Personal Super")
    fund_abn: str = os.getenv("FUND_ABN", "53 226 460 365")
    fund_usi: str = os.getenv("FUND_USI", "HBS0001AU")
    adviser_name: str = os.getenv("ADVISER_NAME", "Sarah Mitchell")
    adviser_slots: tuple[str, ...] = _csv_tuple(
        "ADVISER_SLOTS", "Monday 10am,Tuesday 2pm,Friday 11am"
    )


@dataclass(frozen=True)
class ModelConfig:
    """LLM settings for intent classification and slot normalization."""

    llm_model: str = os.getenv("LLM_MODEL", "gpt-4o-mini")
    azure_endpoint: str = os.getenv("AZURE_OPENAI_ENDPOINT", "")
    azure_deployment: str = os.getenv("AZURE_OPENAI_DEPLOYMENT_NAME", "")
    azure_api_version: str = os.getenv("AZURE_OPENAI_API_VERSION", "2024-06-01")
    classifier_temperature: float = _safe_float("CLASSIFIER_TEMPERATURE", "0.7")
    classifier_max_tokens: int = _safe_int("CLASSIFIER_MAX_TOKENS", "300")
    slot_temperature: float = _safe_float("SLOT_TEMPERATURE", "0.2")
    slot_max_tokens: int = _safe_int("SLOT_MAX_TOKENS", "60")
    request_timeout_sec: float = _safe_float("LLM_TIMEOUT", "15.0")

    @property
    def uses_azure(self) -> bool:
        return bool(self.azure_endpoint)

    @property
    def deployment(self) -> str:
        """Model name to send: the Azure deployment when configured, else the model."""
        if self.uses_azure and self.azure_deployment:
            return self.azure_deployment
        return self.llm_model


@dataclass(frozen=True)
class SpeechConfig:
    """Cloud speech-to-text and text-to-speech settings."""

    tts_language: str = os.getenv("TTS_LANGUAGE", "en-AU")
    tts_voice: str = os.getenv("TTS_VOICE", "en-AU-Wavenet-B")
    tts_speaking_rate: float = _safe_float("TTS_SPEAKING_RATE", "0.98")
    tts_pitch: float = _safe_float("TTS_PITCH", "0.5")
    stt_language: str = os.getenv("STT_LANGUAGE", "en-US")
    stt_model: str = os.getenv("STT_MODEL", "latest_long")
    stt_sample_rate_hz: int = _safe_int("STT_SAMPLE_RATE", "48000")


@dataclass(frozen=True)
class DialogueConfig:
    """Thresholds and timings for the dialogue state machine."""

    max_otp_attempts: int = _safe_int("MAX_OTP_ATTEMPTS", "3")
    fund_offer_delay_sec: float = _safe_float("FUND_OFFER_DELAY", "2.0")
    max_input_length: int = _safe_int("MAX_INPUT_LENGTH", "500")


@dataclass(frozen=True)
class ServerConfig:
    """HTTP server settings."""

    host: str = os.getenv("HOST", "127.0.0.1")
    port: int = _safe_int("PORT", "8000")
    cors_origins: tuple[str, ...] = _csv_tuple("CORS_ORIGINS", "*")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    assistant: AssistantConfig = field(default_factory=AssistantConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    speech: SpeechConfig = field(default_factory=SpeechConfig)
    dialogue: DialogueConfig = field(default_factory=DialogueConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    agent_name: str = os.getenv("AGENT_NAME", "super-assistant")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    for name, value in [
        ("CLASSIFIER_TEMPERATURE", config.model.classifier_temperature),
        ("SLOT_TEMPERATURE", config.model.slot_temperature),
    ]:
        if not 0.0 <= value <= 2.0:
            raise ValueError(f"{name} must be between 0.0 and 2.0, got {value}")

    for name, value in [
        ("CLASSIFIER_MAX_TOKENS", config.model.classifier_max_tokens),
        ("SLOT_MAX_TOKENS", config.model.slot_max_tokens),
    ]:
        if value < 1:
            raise ValueError(f"{name} must be >= 1, got {value}")

    if config.model.request_timeout_sec <= 0:
        raise ValueError(
            f"LLM_TIMEOUT must be > 0, got {config.model.request_timeout_sec}"
        )
    if config.dialogue.max_otp_attempts < 1:
        raise ValueError(
            f"MAX_OTP_ATTEMPTS must be >= 1, got {config.dialogue.max_otp_attempts}"
        )
    if config.dialogue.fund_offer_delay_sec < 0:
        raise ValueError(
            f"FUND_OFFER_DELAY must be >= 0, got {config.dialogue.fund_offer_delay_sec}"
        )
    if config.dialogue.max_input_length < 1:
        raise ValueError(
            f"MAX_INPUT_LENGTH must be >= 1, got {config.dialogue.max_input_length}"
        )
    if not config.assistant.adviser_slots:
        raise ValueError("ADVISER_SLOTS must list at least one bookable slot")
    if not 0.25 <= config.speech.tts_speaking_rate <= 4.0:
        raise ValueError(
            "TTS_SPEAKING_RATE must be between 0.25 and 4.0, "
            f"got {config.speech.tts_speaking_rate}"
        )
    if not 1 <= config.server.port <= 65535:
        raise ValueError(f"PORT must be between 1 and 65535, got {config.server.port}")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    install_session_filter()
    logger.info("Configuration loaded for '%s'", config.assistant.company_name)
    return config


# Singleton instance
settings = load_config()
