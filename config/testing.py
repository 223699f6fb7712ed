"""Testing configuration for the commute permit service."""

from .base import Config
import os


class TestingConfig(Config):
    """Testing configuration."""
    
    # Debug mode
    DEBUG = True
    TESTING = True
    
    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get('TEST_DATABASE_URL') or 'sqlite:///commute_permits_test.db'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'connect_args': {
            'timeout': 30,
        }
    }
    
    # Security
    SECRET_KEY = 'test-secret-key'
    
    # Permits
    PUBLIC_BASE_URL = 'https://permits.example.test'
    
    # SQLite serialises writers, so batch items run one at a time
    BULK_APPROVAL_MAX_WORKERS = 1
    
    # Notifications
    NOTIFICATION_RATE_LIMIT = '1000/second'
    
    # Scheduler
    SCHEDULER_ENABLED = False
    
    # Mail
    MAIL_SUPPRESS_SEND = True
    
    # Logging
    LOG_LEVEL = 'DEBUG'
    
    # Rate limiting
    RATELIMIT_ENABLED = False
    
    # Session
    SESSION_COOKIE_SECURE = False
