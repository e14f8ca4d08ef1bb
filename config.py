import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import model_validator, field_validator
from typing import Optional

BASE_DIR = os.path.abspath(os.path.dirname(__file__))
DEFAULT_DB_URI = f'sqlite:///{os.path.join(BASE_DIR, "pwnguard.db")}'


class Config(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',  # Ignore extra fields from .env
    )

    # Security configuration
    SECRET_KEY: str

    # Database
    DATABASE_URL: str = DEFAULT_DB_URI
    SQLALCHEMY_DATABASE_URI: Optional[str] = None
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False

    @model_validator(mode='after')
    def set_database_config(self) -> 'Config':
        """Set SQLALCHEMY_DATABASE_URI from DATABASE_URL"""
        self.SQLALCHEMY_DATABASE_URI = self.DATABASE_URL
        return self

    # Internationalization
    LANGUAGES: list = ['en', 'pl']
    BABEL_DEFAULT_LOCALE: str = 'en'
    BABEL_DEFAULT_TIMEZONE: str = 'UTC'
    BABEL_TRANSLATION_DIRECTORIES: str = os.path.join(BASE_DIR, 'translations')

    # Audit trail (JSON lines)
    AUDIT_LOG_DIR: str = os.path.join(BASE_DIR, 'logs')

    # Session and cookie security
    SESSION_COOKIE_HTTPONLY: bool = True
    SESSION_COOKIE_SECURE: bool = False
    SESSION_COOKIE_SAMESITE: str = 'Lax'

    # Pwned Passwords (HIBP range API)
    # The sign-in check only runs when both flags are on.
    PWNED_PASSWORD_CHECK_ENABLED: bool = True
    PWNED_PASSWORD_CHECK_ON_SIGN_IN: bool = True
    MIN_PASSWORD_MATCHES: int = 1
    MIN_PASSWORD_MATCHES_WARN: Optional[int] = None
    PWNED_PASSWORD_OPEN_TIMEOUT: float = 5.0
    PWNED_PASSWORD_READ_TIMEOUT: float = 5.0
    PWNED_PASSWORD_USER_AGENT: str = 'pwnguard'
    # Name of the login form field holding the plaintext password
    PWNED_PASSWORD_FORM_FIELD: str = 'password'

    @field_validator('MIN_PASSWORD_MATCHES', 'MIN_PASSWORD_MATCHES_WARN', mode='before')
    def _parse_match_count(cls, v):
        """Allow thresholds in .env with inline comments like '10  # warn only'.
        An empty MIN_PASSWORD_MATCHES_WARN means "same as MIN_PASSWORD_MATCHES".
        """
        if isinstance(v, str):
            v = v.split('#', 1)[0].strip()
            if v == '':
                return None
        return v

    @field_validator('MIN_PASSWORD_MATCHES', 'MIN_PASSWORD_MATCHES_WARN')
    def _positive_match_count(cls, v):
        if v is not None and v < 1:
            raise ValueError('match thresholds must be positive integers')
        return v

    @field_validator('PWNED_PASSWORD_OPEN_TIMEOUT', 'PWNED_PASSWORD_READ_TIMEOUT')
    def _positive_timeout(cls, v):
        if v <= 0:
            raise ValueError('timeouts must be greater than zero')
        return v
