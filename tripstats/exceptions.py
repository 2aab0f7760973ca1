"""
Custom exceptions for tripstats.

The analytics engine itself never raises for bad data; these exceptions are
used by the configuration and execution-boundary layers.
"""


class TripStatsError(Exception):
    """Base exception for all tripstats errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class ConfigurationError(TripStatsError):
    """Invalid or missing configuration."""

    def __init__(self, message: str, config_key: str = None):
        details = {}
        if config_key:
            details['config_key'] = config_key
        super().__init__(message, details)
        self.config_key = config_key


class ProcessingJobError(TripStatsError):
    """A background processing job is missing or failed."""

    def __init__(self, message: str, job_id: str = None, status: str = None):
        details = {}
        if job_id:
            details['job_id'] = job_id
        if status:
            details['status'] = status
        super().__init__(message, details)
        self.job_id = job_id
        self.status = status
