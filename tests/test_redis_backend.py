"""Redis queue/store tests against a mocked redis client."""

from unittest.mock import MagicMock

import redis

from chivecut.jobs.dispatcher import QueueItem
from chivecut.jobs.models import JobRecord
from chivecut.jobs.redis_backend import RedisJobQueue, RedisResultStore


def make_queue(client, clock=lambda: 1000.0):
    return RedisJobQueue(client, "analysis:queue", visibility_timeout=300, clock=clock)


def make_job() -> JobRecord:
    return JobRecord(image_ref="local:a.png", mime_type="image/png", submitted_by="u", post_id="p")


class TestRedisJobQueue:
    def test_push_appends_serialized_job(self):
        client = MagicMock()
        job = make_job()

        make_queue(client).push(job)

        client.rpush.assert_called_once_with("analysis:queue", job.to_json())

    def test_pop_moves_item_in_flight_with_deadline(self):
        client = MagicMock()
        client.blmove.return_value = '{"jobId": "x"}'

        item = make_queue(client).pop(timeout=5)

        client.blmove.assert_called_once_with(
            "analysis:queue", "analysis:queue:processing", 5, "LEFT", "RIGHT"
        )
        client.zadd.assert_called_once_with(
            "analysis:queue:deadlines", {'{"jobId": "x"}': 1300.0}
        )
        assert item == QueueItem(raw='{"jobId": "x"}')

    def test_pop_timeout(self):
        client = MagicMock()
        client.blmove.return_value = None

        assert make_queue(client).pop(timeout=5) is None
        client.zadd.assert_not_called()

    def test_ack_removes_from_processing_and_deadlines(self):
        client = MagicMock()
        pipe = client.pipeline.return_value

        make_queue(client).ack(QueueItem(raw="payload"))

        pipe.lrem.assert_called_once_with("analysis:queue:processing", 1, "payload")
        pipe.zrem.assert_called_once_with("analysis:queue:deadlines", "payload")
        pipe.execute.assert_called_once()

    def test_requeue_expired(self):
        client = MagicMock()
        client.zrangebyscore.return_value = ["a", "b"]
        # Another reaper already claimed "b"
        client.zrem.side_effect = [1, 0]
        pipe = client.pipeline.return_value

        moved = make_queue(client).requeue_expired()

        assert moved == 1
        client.zrangebyscore.assert_called_once_with("analysis:queue:deadlines", "-inf", 1000.0)
        pipe.lrem.assert_called_once_with("analysis:queue:processing", 1, "a")
        pipe.lpush.assert_called_once_with("analysis:queue", "a")

    def test_len(self):
        client = MagicMock()
        client.llen.return_value = 3

        assert len(make_queue(client)) == 3


class TestRedisResultStore:
    def test_set_uses_expiry(self):
        client = MagicMock()

        RedisResultStore(client).set("analysis:jobs:1", "{}", 3600)

        client.set.assert_called_once_with("analysis:jobs:1", "{}", ex=3600)

    def test_get(self):
        client = MagicMock()
        client.get.return_value = None

        assert RedisResultStore(client).get("missing") is None

    def test_ping_failure_is_reported_not_raised(self):
        client = MagicMock()
        client.ping.side_effect = redis.exceptions.ConnectionError("down")

        assert RedisResultStore(client).ping() is False
