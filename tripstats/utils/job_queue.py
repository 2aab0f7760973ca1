"""
Job Queue Infrastructure for tripstats.

Uses Redis Queue (RQ) to run trip processing off the caller's thread.
A caller enqueues a plain-dict payload, a worker runs ``compute`` on it and
stores the result dict; a newer request for the same dataset can simply
cancel the superseded job.

Start a worker with:
    rq worker default --url redis://localhost:6379/1
"""

import copy
import logging
from dataclasses import is_dataclass
from typing import Any, Dict, Iterable, Mapping, Optional

from redis import Redis
from rq import Queue
from rq.exceptions import NoSuchJobError
from rq.job import Job, JobStatus

from ..config import Config
from ..exceptions import ConfigurationError, ProcessingJobError
from ..models import Settings, to_charges
from ..services.processing_service import compute, validate_trips
from .wide_events import track_operation

logger = logging.getLogger(__name__)


# Global Redis connection
_redis_conn: Optional[Redis] = None

FAILED_STATUSES = (JobStatus.FAILED, JobStatus.CANCELED, JobStatus.STOPPED)


def queue_redis_url(redis_url: str, db: int) -> str:
    """
    Point a Redis URL at the queue database.

    Examples:
        >>> queue_redis_url("redis://localhost:6379/0", 1)
        'redis://localhost:6379/1'
        >>> queue_redis_url("redis://localhost:6379", 1)
        'redis://localhost:6379/1'
    """
    head, sep, tail = redis_url.rstrip("/").rpartition("/")
    if sep and tail.isdigit() and not head.endswith("/"):
        return f"{head}/{db}"
    return f"{redis_url.rstrip('/')}/{db}"


def configure_logging(level: Optional[str] = None) -> None:
    """Set up root logging for a worker process (no-op if already configured)."""
    logging.basicConfig(
        level=getattr(logging, (level or Config.LOG_LEVEL).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def get_redis_connection() -> Redis:
    """
    Get or create the Redis connection for the job queue.

    Raises:
        ConfigurationError: If REDIS_URL is not configured
    """
    global _redis_conn

    if _redis_conn is None:
        if not Config.REDIS_URL:
            raise ConfigurationError("REDIS_URL is not configured", config_key="REDIS_URL")

        redis_url = queue_redis_url(Config.REDIS_URL, Config.REDIS_QUEUE_DB)
        _redis_conn = Redis.from_url(redis_url, decode_responses=False)
        logger.info(f"Connected to Redis for job queue: {redis_url}")

    return _redis_conn


def get_job_queue(queue_name: Optional[str] = None) -> Queue:
    """RQ queue for processing jobs (default: Config.PROCESSING_QUEUE)."""
    return Queue(queue_name or Config.PROCESSING_QUEUE, connection=get_redis_connection())


def _plain(record: Any) -> Any:
    if is_dataclass(record) and not isinstance(record, type):
        return record.to_dict()
    if isinstance(record, Mapping):
        return copy.deepcopy(dict(record))
    return record


def build_processing_payload(
    trips: Iterable[Any],
    settings: Any = None,
    charges: Optional[Iterable[Any]] = None,
    locale: Optional[str] = None
) -> Dict[str, Any]:
    """
    Build a self-contained processing request.

    Records are deep-copied into plain dicts so the caller can keep mutating
    its own data while the job waits in the queue.
    """
    return {
        "trips": [_plain(trip) for trip in trips or ()],
        "settings": _plain(settings) if settings is not None else None,
        "charges": [_plain(charge) for charge in charges or ()],
        "locale": locale,
    }


def run_processing_job(payload: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Worker entry point: compute statistics for one payload.

    Returns:
        ProcessedResult as a dict, or None when no trip is usable
    """
    configure_logging()
    trips = payload.get("trips") or []
    settings = Settings.from_dict(payload.get("settings"))
    charges = to_charges(payload.get("charges"))
    locale = payload.get("locale")

    with track_operation(
        "trip_processing",
        locale=locale or settings.locale,
        timezone=settings.timezone,
        electric_strategy=settings.electric_strategy,
        fuel_strategy=settings.fuel_strategy,
    ) as event:
        valid_count = len(validate_trips(trips))
        event.add_business_metric("trips_received", len(trips))
        event.add_business_metric("trips_valid", valid_count)
        event.add_business_metric("trips_dropped", len(trips) - valid_count)
        event.add_business_metric("charges", len(charges))

        with event.timer("compute"):
            result = compute(trips, settings, charges, locale=locale)

        if result is None:
            event.add_business_metric("empty_result", True)
            return None

        summary = result.summary
        event.add_business_metric("trips_active", summary.total_trips)
        event.add_business_metric("total_km", summary.total_km)
        event.add_business_metric("is_hybrid", result.is_hybrid)
        event.add_business_metric("soh", summary.soh)
        if summary.soh_data is not None:
            event.add_business_metric("calibration_warning", summary.soh_data.calibration_warning)

        return result.to_dict()


def enqueue_processing(
    trips: Iterable[Any],
    settings: Any = None,
    charges: Optional[Iterable[Any]] = None,
    locale: Optional[str] = None,
    queue_name: Optional[str] = None,
    job_id: Optional[str] = None
) -> Job:
    """
    Enqueue a processing job.

    Args:
        trips: Raw trip records
        settings: Settings instance or flat settings mapping
        charges: Charging history
        locale: Locale tag for labels
        queue_name: Queue to use (default: Config.PROCESSING_QUEUE)
        job_id: Custom job ID (default: auto-generated)

    Returns:
        RQ Job instance

    Example:
        >>> job = enqueue_processing(trips, settings, charges, locale="es")
        >>> result = get_processing_result(job.id)
    """
    queue = get_job_queue(queue_name)
    payload = build_processing_payload(trips, settings, charges, locale)

    job = queue.enqueue(
        run_processing_job,
        payload,
        job_timeout=Config.PROCESSING_JOB_TIMEOUT,
        result_ttl=Config.PROCESSING_RESULT_TTL,
        job_id=job_id,
    )

    logger.info(f"Enqueued processing job {job.id} on queue '{queue.name}' ({len(payload['trips'])} trips)")
    return job


def get_processing_result(job_id: str) -> Optional[Dict[str, Any]]:
    """
    Fetch the result of a processing job.

    Returns:
        The result dict once finished, or None while the job is still pending
        (a finished job whose dataset had no usable trips also returns None)

    Raises:
        ProcessingJobError: If the job does not exist, failed or was cancelled
    """
    try:
        job = Job.fetch(job_id, connection=get_redis_connection())
    except NoSuchJobError as e:
        raise ProcessingJobError("Processing job not found", job_id=job_id) from e

    status = job.get_status()
    if status == JobStatus.FINISHED:
        return job.return_value()
    if status in FAILED_STATUSES:
        raise ProcessingJobError("Processing job did not complete", job_id=job_id, status=str(status.value))

    logger.debug(f"Processing job {job_id} still {status}")
    return None


def cancel_job(job_id: str) -> bool:
    """
    Cancel a queued processing job.

    Returns:
        True if the job was cancelled, False if it does not exist
    """
    try:
        job = Job.fetch(job_id, connection=get_redis_connection())
    except NoSuchJobError:
        logger.warning(f"Cannot cancel missing job {job_id}")
        return False

    job.cancel()
    logger.info(f"Canceled job {job_id}")
    return True
