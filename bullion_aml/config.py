"""Application settings.

Environment variables (prefix ``AML_``) or a ``.env`` file override the
defaults. Rule thresholds live in ``ComplianceConfig`` and are tunable at
runtime through ``/api/rules``.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="AML_", env_file=".env", case_sensitive=True
    )

    APP_NAME: str = "Bullion AML/CTF Compliance Service"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # Reference data: sanctions list, high-risk industries, rule overrides
    DATA_DIR: Path = Path(__file__).parent.parent / "data"

    # Legacy transactions recorded without an AUD amount are converted at this rate
    USD_TO_AUD_RATE: float = 1.52


settings = Settings()
