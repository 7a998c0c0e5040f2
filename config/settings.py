"""
Configuration settings for the KYC intake application.
Uses pydantic-settings for environment variable management.
"""

from pydantic_settings import BaseSettings
from pydantic import Field
import os
from pathlib import Path


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Verification service
    VERIFICATION_API_URL: str = Field(
        "http://localhost:8000",
        description="Base URL of the verification / DID issuance service"
    )
    SUBMIT_ENDPOINT_PATH: str = Field("/api/kyc-submit", description="KYC submission route")
    SUBMIT_TIMEOUT_SECONDS: float = Field(60.0, description="Give up on a submission after this many seconds")

    # Form behaviour
    VALIDATION_POLICY: str = Field(
        "none",
        description="Step validator policy: 'none' accepts every step, 'required' enforces field checks"
    )

    # Application Mode
    DEMO_MODE: bool = Field(True, description="Serve mock issuance results from the local API")
    LOG_LEVEL: str = Field("INFO", description="Root log level for the UI process")

    # Links
    EXPLORER_BASE_URL: str = Field(
        "https://testnet.xrpl.org/transactions/",
        description="Ledger explorer prefix used by the demo service"
    )
    CREATE_FLOW_URL: str = Field("/create", description="Where the result screen sends the user next")

    # Server Configuration
    HOST: str = Field("0.0.0.0", description="Server host")
    PORT: int = Field(8000, description="Server port")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

    @property
    def submit_url(self) -> str:
        return self.VERIFICATION_API_URL.rstrip("/") + self.SUBMIT_ENDPOINT_PATH


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


def validate_settings() -> tuple[bool, list[str]]:
    """
    Validate the loaded settings.
    Returns (is_valid, list of problems).
    """
    issues = []

    if not settings.VERIFICATION_API_URL.startswith(("http://", "https://")):
        issues.append("VERIFICATION_API_URL must be an http(s) URL")

    if settings.SUBMIT_TIMEOUT_SECONDS <= 0:
        issues.append("SUBMIT_TIMEOUT_SECONDS must be positive")

    if settings.VALIDATION_POLICY not in ("none", "required"):
        issues.append(f"Unknown VALIDATION_POLICY: {settings.VALIDATION_POLICY}")

    return len(issues) == 0, issues


# Load .env from project root
env_path = get_project_root() / ".env"
if env_path.exists():
    from dotenv import load_dotenv
    load_dotenv(env_path)

# On Streamlit Cloud, secrets are in .streamlit/secrets.toml
# Load them into os.environ so pydantic-settings can find them
try:
    import streamlit as st
    for key, value in st.secrets.items():
        if isinstance(value, str) and key not in os.environ:
            os.environ[key] = value
except Exception:
    pass

# Global settings instance
settings = Settings()
