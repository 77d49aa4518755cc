import pytest
import requests

from storefront.data.models.try_on import TryOnModel
from storefront.domain.enums import TryOnStatus, TryOnType
from storefront.services.fal_client import FalRequestError
from storefront.services.tryon_poller import PollOutcome, TryOnPoller
from storefront.tasks import tryon_poll

IN_PROGRESS = FalRequestError(400, "Request is still in progress")
DONE = {"status": "COMPLETED", "images": [{"url": "https://fal.media/result.png"}]}


class ScriptedFal:
    """Plays back one answer (or exception) per status read."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.polls = 0

    def fetch_status(self, request_id):
        self.polls += 1
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer


@pytest.fixture
def record(db, user):
    rec = TryOnModel(
        user_id=user.id,
        type=TryOnType.GENERATED.value,
        status=TryOnStatus.PROCESSING.value,
        request_id="abc123",
        source_urls=["https://shop.test/me.jpg"],
        result_urls=[],
    )
    db.add(rec)
    db.commit()
    db.refresh(rec)
    return rec


def _reload(db, record_id):
    db.expire_all()
    return db.get(TryOnModel, record_id)


def test_poll_loop_runs_until_completed(db, record, monkeypatch):
    fal = ScriptedFal(IN_PROGRESS, DONE)
    monkeypatch.setattr(tryon_poll, "FalClient", lambda: fal)

    tryon_poll.schedule_poll(record.id, "abc123")

    stored = _reload(db, record.id)
    assert stored.status == TryOnStatus.COMPLETED.value
    assert stored.result_urls == ["https://fal.media/result.png"]
    assert fal.polls == 2
    assert fal.answers == []


@pytest.mark.parametrize(
    "answer",
    [
        IN_PROGRESS,
        FalRequestError(404, "Request not found"),
        {"status": "IN_PROGRESS"},
        {"status": "IN_QUEUE", "queue_position": 3},
    ],
)
def test_pending_answers_keep_polling(db, record, answer):
    outcome = TryOnPoller(db, ScriptedFal(answer), max_attempts=5).poll_once(record.id, "abc123", 1)

    assert outcome == PollOutcome.CONTINUE
    assert _reload(db, record.id).status == TryOnStatus.PROCESSING.value


@pytest.mark.parametrize(
    "answer",
    [
        FalRequestError(405, "Method not allowed"),
        FalRequestError(422, [{"msg": "bad image"}]),
        requests.ConnectionError("connection reset"),
        {"status": "FAILED"},
        {"status": "COMPLETED", "images": []},
    ],
)
def test_fatal_answers_fail_the_record(db, record, answer):
    outcome = TryOnPoller(db, ScriptedFal(answer), max_attempts=5).poll_once(record.id, "abc123", 1)

    assert outcome == PollOutcome.FAILED
    assert _reload(db, record.id).status == TryOnStatus.FAILED.value


def test_images_without_status_count_as_completed(db, record):
    answer = {"images": [{"url": "https://fal.media/direct.png"}]}

    outcome = TryOnPoller(db, ScriptedFal(answer)).poll_once(record.id, "abc123", 1)

    assert outcome == PollOutcome.COMPLETED
    assert _reload(db, record.id).result_urls == ["https://fal.media/direct.png"]


def test_completed_payload_wrapper(db, record):
    answer = {"status": "COMPLETED", "payload": {"images": [{"url": "https://fal.media/wrapped.png"}]}}

    TryOnPoller(db, ScriptedFal(answer)).poll_once(record.id, "abc123", 1)

    assert _reload(db, record.id).result_urls == ["https://fal.media/wrapped.png"]


def test_last_attempt_without_answer_times_out(db, record):
    outcome = TryOnPoller(db, ScriptedFal(IN_PROGRESS), max_attempts=3).poll_once(record.id, "abc123", 3)

    assert outcome == PollOutcome.TIMEOUT
    assert _reload(db, record.id).status == TryOnStatus.TIMEOUT.value


def test_deleted_record_stops_the_loop(db, record, monkeypatch):
    record_id = record.id
    db.delete(record)
    db.commit()
    fal = ScriptedFal(DONE)
    monkeypatch.setattr(tryon_poll, "FalClient", lambda: fal)

    assert tryon_poll.poll_tryon_job_task.apply(args=(record_id, "abc123", 1)).get() == "CANCELLED"
    assert fal.polls == 0


def test_settled_record_is_never_overwritten(db, record):
    record.status = TryOnStatus.FAILED.value
    db.commit()

    outcome = TryOnPoller(db, ScriptedFal(DONE)).poll_once(record.id, "abc123", 1)

    assert outcome == PollOutcome.CANCELLED
    stored = _reload(db, record.id)
    assert stored.status == TryOnStatus.FAILED.value
    assert stored.result_urls == []
