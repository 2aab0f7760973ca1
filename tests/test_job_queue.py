"""
Tests for job queue infrastructure.
"""

from unittest.mock import MagicMock, patch

import pytest
from rq.exceptions import NoSuchJobError
from rq.job import JobStatus

from tripstats.config import Config
from tripstats.exceptions import ConfigurationError, ProcessingJobError
from tripstats.models import Settings, Trip
from tripstats.utils import job_queue

from factories import ChargeFactory, TripFactory


@pytest.fixture(autouse=True)
def reset_connection(monkeypatch):
    """Never reuse a cached Redis connection between tests."""
    monkeypatch.setattr(job_queue, "_redis_conn", None)


class TestQueueRedisUrl:
    """Tests for queue_redis_url."""

    @pytest.mark.parametrize("url,expected", [
        ("redis://localhost:6379/0", "redis://localhost:6379/1"),
        ("redis://localhost:6379", "redis://localhost:6379/1"),
        ("redis://localhost:6379/", "redis://localhost:6379/1"),
        ("redis://:secret@cache:6380/4", "redis://:secret@cache:6380/1"),
    ])
    def test_points_at_queue_db(self, url, expected):
        assert job_queue.queue_redis_url(url, 1) == expected


class TestGetRedisConnection:
    """Tests for get_redis_connection."""

    def test_creates_connection_on_queue_db(self, monkeypatch):
        monkeypatch.setattr(Config, "REDIS_URL", "redis://localhost:6379/0")
        monkeypatch.setattr(Config, "REDIS_QUEUE_DB", 1)

        with patch.object(job_queue.Redis, "from_url") as mock_from_url:
            mock_from_url.return_value = MagicMock()

            conn = job_queue.get_redis_connection()

        assert conn is mock_from_url.return_value
        mock_from_url.assert_called_once_with("redis://localhost:6379/1", decode_responses=False)

    def test_returns_cached_instance(self, monkeypatch):
        cached = MagicMock()
        monkeypatch.setattr(job_queue, "_redis_conn", cached)

        with patch.object(job_queue.Redis, "from_url") as mock_from_url:
            assert job_queue.get_redis_connection() is cached
            mock_from_url.assert_not_called()

    def test_missing_url_raises(self, monkeypatch):
        monkeypatch.setattr(Config, "REDIS_URL", "")

        with pytest.raises(ConfigurationError) as exc_info:
            job_queue.get_redis_connection()

        assert exc_info.value.config_key == "REDIS_URL"


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_uses_configured_level(self, monkeypatch):
        monkeypatch.setattr(Config, "LOG_LEVEL", "debug")

        with patch("tripstats.utils.job_queue.logging.basicConfig") as basic_config:
            job_queue.configure_logging()

        assert basic_config.call_args.kwargs["level"] == 10

    def test_unknown_level_defaults_to_info(self):
        with patch("tripstats.utils.job_queue.logging.basicConfig") as basic_config:
            job_queue.configure_logging("chatty")

        assert basic_config.call_args.kwargs["level"] == 20


class TestBuildPayload:
    """Tests for build_processing_payload."""

    def test_plain_dicts(self):
        payload = job_queue.build_processing_payload(
            [Trip(distance=5.0), TripFactory.create()],
            Settings(electric_price=0.2),
            [ChargeFactory.create()],
            locale="en",
        )

        assert payload["trips"][0]["distance"] == 5.0
        assert payload["trips"][1]["distance"] == 10.0
        assert payload["settings"]["electric_price"] == 0.2
        assert payload["charges"][0]["kwh_charged"] == 10.0
        assert payload["locale"] == "en"

    def test_records_are_deep_copied(self):
        records = [TripFactory.create()]
        settings = {"chargerTypes": [{"id": "home", "efficiency": 0.9}]}

        payload = job_queue.build_processing_payload(records, settings)
        records[0]["distance"] = 999
        settings["chargerTypes"][0]["efficiency"] = 0.1

        assert payload["trips"][0]["distance"] == 10.0
        assert payload["settings"]["chargerTypes"][0]["efficiency"] == 0.9

    def test_empty_inputs(self):
        payload = job_queue.build_processing_payload(None)

        assert payload == {"trips": [], "settings": None, "charges": [], "locale": None}


class TestRunProcessingJob:
    """Tests for the worker entry point."""

    def test_returns_result_dict(self, basic_trips):
        payload = job_queue.build_processing_payload(basic_trips, {"electricPrice": 0.2}, locale="en")

        result = job_queue.run_processing_job(payload)

        assert result["summary"]["total_trips"] == 2
        assert result["summary"]["max_cost"] == "0.60"
        assert result["monthly"][0]["month_label"] == "Jan 2025"

    def test_empty_payload_returns_none(self):
        assert job_queue.run_processing_job({"trips": []}) is None

    def test_emits_wide_event(self, basic_trips):
        payload = job_queue.build_processing_payload(basic_trips + [{"distance": "bad"}])

        with patch.object(job_queue, "track_operation", wraps=job_queue.track_operation) as mock_track:
            job_queue.run_processing_job(payload)

        mock_track.assert_called_once()
        assert mock_track.call_args[0][0] == "trip_processing"


class TestEnqueueProcessing:
    """Tests for enqueue_processing."""

    def test_enqueues_worker_entry_point(self, basic_trips):
        mock_queue = MagicMock()
        mock_queue.name = "default"
        mock_queue.enqueue.return_value = MagicMock(id="job-1")

        with patch.object(job_queue, "get_job_queue", return_value=mock_queue):
            job = job_queue.enqueue_processing(basic_trips, {"electricPrice": 0.2}, job_id="job-1")

        assert job.id == "job-1"
        args, kwargs = mock_queue.enqueue.call_args
        assert args[0] is job_queue.run_processing_job
        assert len(args[1]["trips"]) == 3
        assert kwargs["job_timeout"] == Config.PROCESSING_JOB_TIMEOUT
        assert kwargs["result_ttl"] == Config.PROCESSING_RESULT_TTL
        assert kwargs["job_id"] == "job-1"

    def test_default_queue_name(self):
        with patch.object(job_queue, "get_redis_connection", return_value=MagicMock()), \
                patch.object(job_queue, "Queue") as mock_queue_cls:
            job_queue.get_job_queue()

        assert mock_queue_cls.call_args[0][0] == Config.PROCESSING_QUEUE


class TestGetProcessingResult:
    """Tests for get_processing_result."""

    def _fetch(self, status, value=None):
        job = MagicMock()
        job.get_status.return_value = status
        job.return_value.return_value = value
        return patch.object(job_queue.Job, "fetch", return_value=job)

    @pytest.fixture(autouse=True)
    def fake_connection(self):
        with patch.object(job_queue, "get_redis_connection", return_value=MagicMock()):
            yield

    def test_finished(self):
        with self._fetch(JobStatus.FINISHED, {"is_hybrid": False}):
            assert job_queue.get_processing_result("job-1") == {"is_hybrid": False}

    def test_pending(self):
        with self._fetch(JobStatus.QUEUED):
            assert job_queue.get_processing_result("job-1") is None

    @pytest.mark.parametrize("status", [JobStatus.FAILED, JobStatus.CANCELED, JobStatus.STOPPED])
    def test_failed(self, status):
        with self._fetch(status):
            with pytest.raises(ProcessingJobError) as exc_info:
                job_queue.get_processing_result("job-1")

        assert exc_info.value.job_id == "job-1"
        assert exc_info.value.status == status.value

    def test_missing(self):
        with patch.object(job_queue.Job, "fetch", side_effect=NoSuchJobError("gone")):
            with pytest.raises(ProcessingJobError, match="not found"):
                job_queue.get_processing_result("job-1")


class TestCancelJob:
    """Tests for cancel_job."""

    @pytest.fixture(autouse=True)
    def fake_connection(self):
        with patch.object(job_queue, "get_redis_connection", return_value=MagicMock()):
            yield

    def test_cancels(self):
        job = MagicMock()

        with patch.object(job_queue.Job, "fetch", return_value=job):
            assert job_queue.cancel_job("job-1") is True

        job.cancel.assert_called_once()

    def test_missing_job(self):
        with patch.object(job_queue.Job, "fetch", side_effect=NoSuchJobError("gone")):
            assert job_queue.cancel_job("job-1") is False
