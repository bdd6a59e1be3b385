import asyncio
import dataclasses
from pathlib import Path

import pytest

from exam_runner.backend import DemoExamBackend
from exam_runner.config import RunnerSettings
from exam_runner.errors import (
    DataIntegrityError,
    ExamError,
    MicrophoneCheckRequired,
    MicrophoneError,
    SubmissionError,
)
from exam_runner.notifications import Level
from exam_runner.session import ExamSession, SessionState
from exam_runner.state_machine import Phase
from helpers import FakeBackend, make_question, make_section


@pytest.fixture
def settings(tmp_path: Path) -> RunnerSettings:
    return RunnerSettings(
        tick_seconds=0.01,
        finalize_grace_seconds=0,
        upload_drain_seconds=1,
        demo_dir=tmp_path / "demo",
    )


def two_part_backend() -> FakeBackend:
    """Two sections (5s/10s and 3s/6s), one question each."""
    return FakeBackend(
        sections=[
            make_section("s2", 2, prep=3, speak=6),
            make_section("s1", 1, prep=5, speak=10),
        ],
        questions={
            "s1": [make_question("q1", "s1", 1)],
            "s2": [make_question("q2", "s2", 1)],
        },
    )


async def pass_mic_check(session: ExamSession) -> None:
    await session.mic_check.start()
    await session.mic_check.stop()
    session.mic_check.accept()


async def ready_session(backend, audio_input, notifier, settings) -> ExamSession:
    session = ExamSession(backend, audio_input, "t1", "p1", notifier, settings)
    await session.load()
    await pass_mic_check(session)
    await session.begin(start_timer=False)
    return session


async def tick(session: ExamSession, count: int) -> None:
    for _ in range(count):
        await session.machine.tick()
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_full_exam_scenario(audio_input, notifier, settings) -> None:
    backend = two_part_backend()
    session = await ready_session(backend, audio_input, notifier, settings)
    assert backend.created == [("p1", "t1")]

    await tick(session, 23)
    assert (session.machine.index, session.machine.phase) == (1, Phase.SPEAKING)
    assert session.machine.remaining == 1
    assert backend.completed == []

    await tick(session, 1)
    state = await asyncio.wait_for(session.wait_finished(), timeout=2)

    assert state is SessionState.COMPLETED
    assert sorted(session.recorder.recordings) == ["q1", "q2"]
    assert audio_input.opens == 3  # microphone check + two answers
    assert backend.uploads == ["answer-q1.wav", "answer-q2.wav"]
    assert [qid for _, qid, _ in backend.answers] == ["q1", "q2"]
    assert backend.completed == ["sub-1"]
    assert notifier.by_level(Level.SUCCESS)[0].message == "2 of 2 questions answered."
    assert session.summary()["missed"] == []


@pytest.mark.asyncio
async def test_mic_failure_mid_exam_still_finalizes(audio_input, notifier, settings) -> None:
    backend = two_part_backend()
    session = await ready_session(backend, audio_input, notifier, settings)

    await tick(session, 15)
    assert session.machine.index == 1
    audio_input.fail_with = MicrophoneError("permission revoked")

    await tick(session, 3)
    assert (session.machine.phase, session.machine.remaining) == (Phase.SPEAKING, 6)

    await tick(session, 6)
    state = await asyncio.wait_for(session.wait_finished(), timeout=2)

    assert state is SessionState.COMPLETED
    summary = session.summary()
    assert (summary["answered"], summary["total"], summary["missed"]) == (1, 2, ["q2"])
    assert [n.title for n in notifier.by_level(Level.WARNING)] == ["Recording did not start"]
    assert backend.completed == ["sub-1"]


@pytest.mark.asyncio
async def test_exam_cannot_start_without_mic_check(audio_input, notifier, settings) -> None:
    backend = two_part_backend()
    session = ExamSession(backend, audio_input, "t1", "p1", notifier, settings)

    with pytest.raises(ExamError):
        await session.begin()

    await session.load()
    with pytest.raises(MicrophoneCheckRequired):
        await session.begin()

    assert backend.created == []
    assert session.machine is None


@pytest.mark.asyncio
async def test_load_failure_is_blocking(audio_input, notifier, settings) -> None:
    backend = two_part_backend()
    backend.failing_sections = {"s2"}
    session = ExamSession(backend, audio_input, "t1", "p1", notifier, settings)

    with pytest.raises(DataIntegrityError):
        await session.load()

    assert session.state is SessionState.FAILED
    error = notifier.by_level(Level.ERROR)[0]
    assert error.blocking
    assert await session.wait_finished() is SessionState.FAILED


@pytest.mark.asyncio
async def test_orphan_sections_are_announced(audio_input, notifier, settings) -> None:
    backend = FakeBackend(
        sections=[make_section("lost", 1, parent="gone")],
        questions={"lost": [make_question("q1", "lost", 1)]},
    )
    session = ExamSession(backend, audio_input, "t1", "p1", notifier, settings)

    await session.load()

    assert session.state is SessionState.MIC_CHECK
    assert notifier.by_level(Level.WARNING)[0].title == "Some sections are misplaced"


@pytest.mark.asyncio
async def test_submission_create_failure(audio_input, notifier, settings) -> None:
    backend = two_part_backend()
    backend.fail_create = True
    session = ExamSession(backend, audio_input, "t1", "p1", notifier, settings)
    await session.load()
    await pass_mic_check(session)

    with pytest.raises(SubmissionError):
        await session.begin()

    assert session.machine is None
    assert notifier.by_level(Level.ERROR)[0].title == "Could not start the test"


@pytest.mark.asyncio
async def test_finalize_failure_allows_manual_retry(audio_input, notifier, settings) -> None:
    backend = two_part_backend()
    backend.fail_complete = 1
    backend.fail_uploads_for = {"q2"}
    session = await ready_session(backend, audio_input, notifier, settings)

    await tick(session, 24)
    state = await asyncio.wait_for(session.wait_finished(), timeout=2)

    assert state is SessionState.FINALIZE_FAILED
    error = notifier.by_level(Level.ERROR)[-1]
    assert (error.title, error.blocking) == ("Test was not submitted", True)
    assert session.summary()["failed_uploads"] == ["q2"]

    backend.fail_uploads_for = set()
    assert await session.retry_finalize() is True
    assert session.state is SessionState.COMPLETED
    assert backend.completed == ["sub-1"]
    assert session.summary()["failed_uploads"] == []


@pytest.mark.asyncio
async def test_retry_requires_failed_finalize(audio_input, notifier, settings) -> None:
    session = await ready_session(two_part_backend(), audio_input, notifier, settings)
    with pytest.raises(ExamError):
        await session.retry_finalize()


@pytest.mark.asyncio
async def test_cancel_stops_everything(audio_input, notifier, settings) -> None:
    session = await ready_session(two_part_backend(), audio_input, notifier, settings)
    await tick(session, 6)
    assert session.recorder.is_recording

    await session.cancel()

    assert await session.wait_finished() is SessionState.CANCELLED
    assert audio_input.open_handles == 0
    assert session.machine.phase is Phase.CANCELLED


@pytest.mark.asyncio
async def test_cancel_during_finalize_never_completes(audio_input, notifier, settings) -> None:
    settings = dataclasses.replace(settings, finalize_grace_seconds=0.3)
    backend = two_part_backend()
    session = await ready_session(backend, audio_input, notifier, settings)

    await tick(session, 24)
    assert session.state is SessionState.FINALIZING

    await session.cancel()
    assert await session.wait_finished() is SessionState.CANCELLED

    await asyncio.sleep(0.4)
    assert session.state is SessionState.CANCELLED
    assert backend.completed == []
    assert notifier.by_level(Level.SUCCESS) == []


@pytest.mark.asyncio
async def test_cancel_after_completion_is_ignored(audio_input, notifier, settings) -> None:
    backend = two_part_backend()
    session = await ready_session(backend, audio_input, notifier, settings)
    await tick(session, 24)
    assert await asyncio.wait_for(session.wait_finished(), timeout=2) is SessionState.COMPLETED

    await session.cancel()

    assert session.state is SessionState.COMPLETED


@pytest.mark.asyncio
async def test_cancel_leaves_inflight_uploads_running(audio_input, notifier, settings) -> None:
    backend = two_part_backend()
    backend.upload_delay = 0.2
    session = await ready_session(backend, audio_input, notifier, settings)

    await tick(session, 15)
    assert session.uploader.pending == 1

    await session.cancel()
    assert session.state is SessionState.CANCELLED
    assert session.uploader.pending == 1
    assert backend.answers == []

    assert await session.uploader.drain(2)
    assert [qid for _, qid, _ in backend.answers] == ["q1"]
    assert backend.completed == []

@pytest.mark.asyncio
async def test_navigation_through_session(audio_input, notifier, settings) -> None:
    session = await ready_session(two_part_backend(), audio_input, notifier, settings)

    await session.next_question()
    snapshot = session.snapshot()
    assert (snapshot.index, snapshot.remaining) == (1, 3)

    await session.previous_question()
    assert session.snapshot().remaining == 5


@pytest.mark.asyncio
async def test_navigation_gives_a_full_first_second(audio_input, notifier, settings) -> None:
    settings = dataclasses.replace(settings, tick_seconds=0.5)
    session = ExamSession(two_part_backend(), audio_input, "t1", "p1", notifier, settings)
    await session.load()
    await pass_mic_check(session)
    await session.begin()

    await asyncio.sleep(0.3)
    await session.next_question()
    assert session.snapshot().remaining == 3

    # The tick due 0.5s after begin was moved to 0.5s after the navigation.
    await asyncio.sleep(0.3)
    assert session.snapshot().remaining == 3

    await asyncio.sleep(0.4)
    assert session.snapshot().remaining == 2
    await session.cancel()

@pytest.mark.asyncio
async def test_ticker_drives_exam_to_completion(audio_input, notifier, settings) -> None:
    backend = FakeBackend(
        sections=[make_section("s1", 1, prep=1, speak=1)],
        questions={"s1": [make_question("q1", "s1", 1), make_question("q2", "s1", 2)]},
    )
    session = ExamSession(backend, audio_input, "t1", "p1", notifier, settings)
    await session.load()
    await pass_mic_check(session)

    await session.begin()
    state = await asyncio.wait_for(session.wait_finished(), timeout=5)

    assert state is SessionState.COMPLETED
    assert backend.completed == ["sub-1"]
    assert not session.ticker.running


@pytest.mark.asyncio
async def test_demo_mode_keeps_answers_local(audio_input, notifier, settings) -> None:
    reader = FakeBackend(
        sections=[make_section("s1", 1, prep=0, speak=1)],
        questions={"s1": [make_question("q1", "s1", 1)]},
    )
    backend = DemoExamBackend(reader, settings.demo_dir)
    session = await ready_session(backend, audio_input, notifier, settings)

    await tick(session, 2)
    state = await asyncio.wait_for(session.wait_finished(), timeout=2)

    assert state is SessionState.COMPLETED
    assert reader.created == [] and reader.uploads == [] and reader.completed == []
    assert session.submission_id.startswith("demo-")
    assert session.result["status"] == "submitted"
    stored = backend.submissions[session.submission_id]["answers"]
    assert len(stored) == 1 and stored[0]["audio_url"].startswith("file://")
    assert len(list(settings.demo_dir.glob("*.wav"))) == 1
