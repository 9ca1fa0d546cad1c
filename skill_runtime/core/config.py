"""Application configuration management.

Settings are read once from environment variables. An environment-specific
``.env.<environment>`` file is loaded first (falling back to ``.env``) so local
development does not need exported variables.
"""

import os
from enum import Enum
from pathlib import Path

from dotenv import load_dotenv


class Environment(str, Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


def get_environment() -> Environment:
    """Get the current environment.

    Returns:
        Environment: The current environment (development, staging, production, or test).
    """
    match os.getenv("APP_ENV", "development").lower():
        case "production" | "prod":
            return Environment.PRODUCTION
        case "staging" | "stage":
            return Environment.STAGING
        case "test":
            return Environment.TEST
        case _:
            return Environment.DEVELOPMENT


def load_env_file() -> None:
    """Load the environment-specific .env file, falling back to the base .env file."""
    env = get_environment()
    base_dir = Path(__file__).resolve().parent.parent.parent

    for candidate in (base_dir / f".env.{env.value}", base_dir / ".env"):
        if candidate.is_file():
            load_dotenv(dotenv_path=candidate)
            return


def parse_bool(value: str) -> bool:
    """Parse a boolean flag from an environment variable value."""
    return value.strip().lower() in ("true", "1", "t", "yes", "y", "on")


load_env_file()


class Settings:
    """Application settings without using pydantic."""

    def __init__(self):
        """Initialize application settings from environment variables."""
        self.ENVIRONMENT = get_environment()

        # Application
        self.PROJECT_NAME = os.getenv("PROJECT_NAME", "Skill Runtime")
        self.DEBUG = parse_bool(os.getenv("DEBUG", "false"))

        # Logging
        default_level = "DEBUG" if self.ENVIRONMENT == Environment.DEVELOPMENT else "INFO"
        default_format = "console" if self.ENVIRONMENT == Environment.DEVELOPMENT else "json"
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", default_level).upper()
        self.LOG_FORMAT = os.getenv("LOG_FORMAT", default_format).lower()

        # Skills
        default_skills_dir = Path(__file__).resolve().parent.parent.parent / "skills"
        self.SKILLS_DIR = os.getenv("SKILLS_DIR", str(default_skills_dir))
        self.SKILLS_MAX_DEPENDENCY_DEPTH = int(os.getenv("SKILLS_MAX_DEPENDENCY_DEPTH", "32"))
        self.SKILLS_META_TOOL_VERBOSE = parse_bool(os.getenv("SKILLS_META_TOOL_VERBOSE", "false"))

        self.apply_environment_settings()

    def apply_environment_settings(self) -> None:
        """Apply environment-specific overrides unless explicitly set."""
        env_settings = {
            Environment.DEVELOPMENT: {"DEBUG": True},
            Environment.TEST: {"DEBUG": True, "LOG_FORMAT": "console"},
            Environment.STAGING: {"DEBUG": False},
            Environment.PRODUCTION: {"DEBUG": False, "LOG_LEVEL": "WARNING"},
        }

        for key, value in env_settings.get(self.ENVIRONMENT, {}).items():
            if key not in os.environ:
                setattr(self, key, value)


settings = Settings()
