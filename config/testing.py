"""
Testing configuration for the TidyUp backend
"""
import os
import tempfile

from config.settings import Config


class TestingConfig(Config):
    """Testing configuration with isolated database and safe defaults"""

    TESTING = True
    DEBUG = False

    # Use in-memory SQLite for fast tests
    SQLALCHEMY_DATABASE_URI = os.getenv('TEST_DATABASE_URL', 'sqlite:///:memory:')

    SECRET_KEY = 'test-secret-key'
    JWT_SECRET = 'test-jwt-secret-for-the-tidyup-suite-0123456789'

    # Disable rate limiting in tests
    RATELIMIT_ENABLED = False

    UPLOAD_FOLDER = os.path.join(tempfile.gettempdir(), 'tidyup_test_uploads')

    # Keep "is this in the future" checks independent of the host zone
    TIMEZONE = 'UTC'

    SOCKETIO_ASYNC_MODE = 'threading'

    # Logging
    LOG_LEVEL = 'WARNING'

    CORS_ORIGINS = ['http://localhost:8081', 'http://localhost:19006']
