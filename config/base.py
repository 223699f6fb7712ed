"""Base configuration for the commute permit service."""

import os
from datetime import timedelta


class Config:
    """Base configuration class."""
    
    # Security
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    
    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///commute_permits.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }
    
    # Session management
    PERMANENT_SESSION_LIFETIME = timedelta(hours=24)
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    
    # Permits
    PUBLIC_BASE_URL = os.environ.get('PUBLIC_BASE_URL')  # falls back to the request host
    PERMIT_STORAGE_DIR = os.environ.get('PERMIT_STORAGE_DIR', 'var/permits')
    PERMIT_FONT_PATH = os.environ.get('PERMIT_FONT_PATH')  # TTF for non-latin names
    ISSUING_COMPANY = os.environ.get('ISSUING_COMPANY', '')
    
    # Bulk approval
    BULK_APPROVAL_MAX_ITEMS = 50
    BULK_APPROVAL_BATCH_SIZE = 10
    BULK_APPROVAL_MAX_WORKERS = int(os.environ.get('BULK_APPROVAL_MAX_WORKERS', 10))
    
    # Notifications
    NOTIFICATION_DEDUP_HOURS = 24
    NOTIFICATION_RATE_LIMIT = os.environ.get('NOTIFICATION_RATE_LIMIT', '5/second')
    
    # Expiration monitor defaults (overridden by stored system settings)
    DEFAULT_LICENSE_WARNING_DAYS = 30
    DEFAULT_VEHICLE_WARNING_DAYS = 30
    DEFAULT_INSURANCE_WARNING_DAYS = 30
    DEFAULT_ADMIN_ESCALATION_DAYS = 7
    
    # Scheduler
    SCHEDULER_ENABLED = os.environ.get('SCHEDULER_ENABLED', 'True').lower() == 'true'
    EXPIRATION_MONITOR_HOUR = int(os.environ.get('EXPIRATION_MONITOR_HOUR', 9))
    EXPIRATION_MONITOR_MINUTE = int(os.environ.get('EXPIRATION_MONITOR_MINUTE', 0))
    
    # Mail configuration
    MAIL_SERVER = os.environ.get('MAIL_SERVER')
    MAIL_PORT = int(os.environ.get('MAIL_PORT', 587))
    MAIL_USE_TLS = os.environ.get('MAIL_USE_TLS', 'True').lower() == 'true'
    MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
    MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
    MAIL_DEFAULT_SENDER = os.environ.get('MAIL_DEFAULT_SENDER', 'noreply@commute-permits.local')
    
    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_DIR = os.environ.get('LOG_DIR', 'logs')
    
    # Rate limiting
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')
    RATELIMIT_HEADERS_ENABLED = True
