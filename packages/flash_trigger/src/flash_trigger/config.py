"""
Runtime settings for Flash triggers.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .schemas import MisfireInstruction


class TriggerSettings(BaseSettings):
    """
    Defaults applied to triggers that do not configure them explicitly.

    Every field can be overridden through the environment with the
    ``FLASH_TRIGGER_`` prefix, e.g. ``FLASH_TRIGGER_MISFIRE_THRESHOLD_MS=5000``.
    """

    model_config = SettingsConfigDict(
        env_prefix="FLASH_TRIGGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Scheduling ---
    # How late (in ms) a fire time may be before the owner treats it as missed
    MISFIRE_THRESHOLD_MS: int = Field(default=60_000, ge=0)
    DEFAULT_GROUP: str = "DEFAULT"
    DEFAULT_MISFIRE_INSTRUCTION: MisfireInstruction = MisfireInstruction.SMART_POLICY

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str | None = None

    @field_validator("DEFAULT_GROUP")
    @classmethod
    def validate_group(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("DEFAULT_GROUP cannot be empty.")
        return v

    @field_validator("DEFAULT_MISFIRE_INSTRUCTION", mode="before")
    @classmethod
    def parse_instruction(cls, v):
        """Accepts enum members, their integer values or their names."""
        if isinstance(v, str) and not v.isdigit():
            try:
                return MisfireInstruction[v.upper()]
            except KeyError as e:
                raise ValueError(f"Unknown misfire instruction: {v}") from e
        if isinstance(v, str):
            return int(v)
        return v


# Singleton instance for core use
trigger_settings = TriggerSettings()
