"""
Configuration settings for the User Registry backend
"""

import os
import logging

logger = logging.getLogger(__name__)

# Environment configuration
ENV = os.getenv("ENV", "development")
PORT = int(os.getenv("PORT", 3000))

# Database configuration
DB_HOST = os.getenv("DB_HOST", "postgres")
DB_PORT = int(os.getenv("DB_PORT", 5432))
DB_USER = os.getenv("DB_USER", "postgres")
DB_PASSWORD = os.getenv("DB_PASSWORD", "rootpassword")
DB_NAME = os.getenv("DB_NAME", "mi_app_db")

# Pool sizing is fixed in code, not externally configurable
DB_POOL_MIN_SIZE = 2
DB_POOL_MAX_SIZE = 10
DB_COMMAND_TIMEOUT = 60
DB_ACQUIRE_TIMEOUT = None  # wait for a free connection indefinitely

# Startup reconnect policy
DB_RETRY_DELAY = float(os.getenv("DB_RETRY_DELAY", 5))
DB_MAX_RETRIES = int(os.getenv("DB_MAX_RETRIES", 0)) or None  # 0 means retry forever

# Window used by the "recent users" statistic
RECENT_USERS_WINDOW_DAYS = 7

# CORS settings
ALLOWED_ORIGINS = ["*"]

# Console client
API_BASE_URL = os.getenv("API_BASE_URL", f"http://localhost:{PORT}/api")
USERS_REFRESH_INTERVAL = 30
STATUS_REFRESH_INTERVAL = 60
MESSAGE_LIFETIME = 5

logger.debug(f"Environment: {ENV}, database target: {DB_HOST}:{DB_PORT}/{DB_NAME}")
