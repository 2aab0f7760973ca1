import os


class Config:
    """Engine and worker configuration from environment variables."""

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Job queue (execution boundary)
    REDIS_URL = os.environ.get('REDIS_URL', 'redis://localhost:6379/0')
    REDIS_QUEUE_DB = int(os.environ.get('REDIS_QUEUE_DB', 1))
    PROCESSING_QUEUE = os.environ.get('PROCESSING_QUEUE', 'default')
    PROCESSING_JOB_TIMEOUT = int(os.environ.get('PROCESSING_JOB_TIMEOUT', 120))
    PROCESSING_RESULT_TTL = int(os.environ.get('PROCESSING_RESULT_TTL', 600))

    # Presentation
    DEFAULT_LOCALE = os.environ.get('DEFAULT_LOCALE', 'es')
    DEFAULT_TIMEZONE = os.environ.get('DEFAULT_TIMEZONE', 'UTC')

    # Vehicle defaults
    DEFAULT_BATTERY_SIZE_KWH = float(os.environ.get('DEFAULT_BATTERY_SIZE_KWH', 60.48))

    # Records
    TOP_RECORDS_LIMIT = int(os.environ.get('TOP_RECORDS_LIMIT', 10))
