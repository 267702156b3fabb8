"""
Application configuration
All values can be overridden from the environment (or a .env file).
"""
import os

from dotenv import load_dotenv

load_dotenv()

# Absolute path of the backend directory
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def _split_env(name: str, default: str) -> list:
    return [item.strip() for item in os.environ.get(name, default).split(',') if item.strip()]


class Config:
    """Base configuration"""

    # ==================== Security ====================
    # Fernet key used to encrypt integration credentials at rest
    CREDENTIAL_ENCRYPTION_KEY = os.environ.get('CREDENTIAL_ENCRYPTION_KEY')

    # Hostnames accepted in Origin / Referer for state-changing requests
    TRUSTED_HOSTS = _split_env('TRUSTED_HOSTS', 'localhost,127.0.0.1')

    # ==================== Database ====================
    DATABASE_URL = os.environ.get('DATABASE_URL')
    if DATABASE_URL:
        SQLALCHEMY_DATABASE_URI = DATABASE_URL
    else:
        SQLALCHEMY_DATABASE_URI = f'sqlite:///{os.path.join(BASE_DIR, "dashboard.db")}'

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # ==================== CORS ====================
    CORS_ORIGINS = _split_env('CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000')

    # ==================== Logging ====================
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FILE = os.environ.get('LOG_FILE')

    # ==================== Sync ====================
    # Minimum seconds between two admitted syncs for the same key
    SYNC_COOLDOWN_SECONDS = float(os.environ.get('SYNC_COOLDOWN_SECONDS', '60'))
    # How long finished progress entries stay queryable
    SYNC_PROGRESS_TTL_SECONDS = float(os.environ.get('SYNC_PROGRESS_TTL_SECONDS', '600'))
    # Timeout for outbound integration API calls
    INTEGRATION_HTTP_TIMEOUT = float(os.environ.get('INTEGRATION_HTTP_TIMEOUT', '30'))

    @classmethod
    def get_cors_config(cls):
        """CORS settings for the /api/* routes"""
        return {
            "origins": cls.CORS_ORIGINS,
            "methods": ["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "X-OMD-Request"],
            "supports_credentials": False,
        }


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    LOG_LEVEL = 'DEBUG'


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    LOG_LEVEL = 'WARNING'

    @classmethod
    def validate(cls):
        """Return a list of configuration problems (empty when fine)"""
        errors = []

        if not os.environ.get('CREDENTIAL_ENCRYPTION_KEY'):
            errors.append('CREDENTIAL_ENCRYPTION_KEY is not set (accounts cannot be connected)')

        if not os.environ.get('DATABASE_URL'):
            errors.append('DATABASE_URL is not set, using the local SQLite file')

        return errors


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    LOG_LEVEL = 'WARNING'
    # Fixed key so tests can round-trip stored credentials
    CREDENTIAL_ENCRYPTION_KEY = 'bXktdGVzdGluZy1rZXktZm9yLWRhc2hib2FyZC0xMjM='
    TRUSTED_HOSTS = ['localhost', '127.0.0.1']
    SYNC_COOLDOWN_SECONDS = 60.0
    SYNC_PROGRESS_TTL_SECONDS = 600.0


# Environment name -> config class
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config():
    """Pick the config class from FLASK_ENV"""
    env = os.environ.get('FLASK_ENV', 'development')
    return config.get(env, config['default'])
