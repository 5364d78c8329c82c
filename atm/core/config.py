"""
Configuration settings for the ATM.
Loads environment variables (and an optional .env file) and provides application settings.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """

    # Database
    DATABASE_URL: str = "sqlite:///./atm.db"
    DB_ECHO: bool = False
    DB_TIMEOUT: int = 10  # seconds

    # Session
    SESSION_FILE: str = "~/.atm/session.json"

    # Security
    BCRYPT_ROUNDS: int = 10
    MAX_LOGIN_ATTEMPTS: int = 3

    # Transactions
    MAX_CONFLICT_RETRIES: int = 3

    # Logging
    LOG_LEVEL: str = "WARNING"

    # CLI
    PROJECT_NAME: str = "atm"
    VERSION: str = "1.0.0"
    DESCRIPTION: str = "CLI-based virtual ATM"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Create global settings instance
settings = Settings()
