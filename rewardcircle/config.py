"""
Configuration management for RewardCircle.
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _csv_env(name: str, default: str = '') -> list:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(',') if item.strip()]


class BaseConfig:
    """Base configuration."""
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Bearer tokens (HS256). Falls back to SECRET_KEY when not set.
    AUTH_TOKEN_SECRET = os.getenv('AUTH_TOKEN_SECRET') or SECRET_KEY
    AUTH_TOKEN_AUDIENCE = os.getenv('AUTH_TOKEN_AUDIENCE') or None
    AUTH_TOKEN_TTL_SECONDS = int(os.getenv('AUTH_TOKEN_TTL_SECONDS', '3600'))

    # Shared key for X-Dev-Key header impersonation (empty = disabled)
    DEV_KEY = os.getenv('DEV_TEST_KEY', '')

    # Pin every request to one tenant slug (single-org deployments)
    LOCKED_TENANT_SLUG = os.getenv('DEFAULT_ORG_ID') or None
    AUTO_CREATE_TENANTS = False

    # Ledger: how many times a conflicting read-modify-write is re-run
    LEDGER_CONFLICT_RETRIES = int(os.getenv('LEDGER_CONFLICT_RETRIES', '3'))

    # Role lookups are cached per process; never authoritative
    ROLE_CACHE_TIMEOUT = int(os.getenv('ROLE_CACHE_TIMEOUT', '60'))

    CORS_ORIGINS = _csv_env('CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000')

    # Shared role cache; unset means a per-process SimpleCache
    REDIS_URL = os.getenv('REDIS_URL') or None


class DevelopmentConfig(BaseConfig):
    """Development configuration."""
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.getenv(
        'DATABASE_URL',
        'sqlite:///rewardcircle_dev.db'  # SQLite fallback for local dev
    )
    AUTO_CREATE_TENANTS = True


class ProductionConfig(BaseConfig):
    """Production configuration."""
    DEBUG = False

    _db_url = os.getenv('DATABASE_URL', '')
    if _db_url.startswith('postgres://'):
        # SQLAlchemy requires postgresql:// not postgres://
        _db_url = _db_url.replace('postgres://', 'postgresql://', 1)

    SQLALCHEMY_DATABASE_URI = _db_url

    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 5,
        'pool_recycle': 300,
        'pool_pre_ping': True,  # Verify connections before using
    }

    _secret_key = os.getenv('SECRET_KEY', '')

    # Substrings that give away a placeholder secret
    INSECURE_SECRET_PATTERNS = ('dev', 'change', 'default', 'test', 'secret', 'password')
    MIN_SECRET_LENGTH = 32

    @classmethod
    def _check_secret(cls, name: str, value: str) -> None:
        if not value:
            raise RuntimeError(
                f"CRITICAL: {name} environment variable is not set!\n"
                "Generate one with: python -c \"import secrets; print(secrets.token_hex(32))\""
            )
        lower_value = value.lower()
        for pattern in cls.INSECURE_SECRET_PATTERNS:
            if pattern in lower_value:
                raise RuntimeError(f"CRITICAL: {name} contains '{pattern}' and looks like a placeholder!")
        if len(value) < cls.MIN_SECRET_LENGTH:
            raise RuntimeError(f"CRITICAL: {name} is too short (minimum {cls.MIN_SECRET_LENGTH} characters)!")

    @classmethod
    def validate(cls) -> None:
        """
        Refuse to start production with unsafe settings.

        Checks SECRET_KEY and the token signing secret, requires a database
        URL, and forbids the X-Dev-Key override.

        Raises:
            RuntimeError: On the first problem found
        """
        cls._check_secret('SECRET_KEY', cls._secret_key)
        if os.getenv('AUTH_TOKEN_SECRET'):
            cls._check_secret('AUTH_TOKEN_SECRET', os.getenv('AUTH_TOKEN_SECRET'))
        if not cls.SQLALCHEMY_DATABASE_URI:
            raise RuntimeError("CRITICAL: DATABASE_URL environment variable is not set!")
        if os.getenv('DEV_TEST_KEY'):
            raise RuntimeError("CRITICAL: DEV_TEST_KEY must not be set in production!")

    SECRET_KEY = _secret_key  # Will be validated at app startup
    AUTH_TOKEN_SECRET = os.getenv('AUTH_TOKEN_SECRET') or _secret_key


class TestingConfig(BaseConfig):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SECRET_KEY = 'testing-secret-key'
    AUTH_TOKEN_SECRET = 'testing-token-secret-with-enough-length'
    AUTH_TOKEN_AUDIENCE = None
    DEV_KEY = ''
    LOCKED_TENANT_SLUG = None
    CACHE_TYPE = 'SimpleCache'


config_map = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig
}


def get_config(config_name: str = 'development'):
    """Get configuration class by name."""
    return config_map.get(config_name, DevelopmentConfig)


def validate_config(config_name: str = 'development') -> None:
    """
    Validate configuration before app startup.

    In production, secrets, the database URL and the dev override are checked.

    Raises:
        RuntimeError: If validation fails in production
    """
    if config_name == 'production':
        ProductionConfig.validate()
