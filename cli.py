import argparse
import asyncio
import logging
import sys
import threading

from core.logging_setup import setup_console_logging
from exam_runner.audio import SoundDeviceInput
from exam_runner.backend import DemoExamBackend, RemoteExamBackend
from exam_runner.client import ExamApiClient
from exam_runner.config import RunnerSettings
from exam_runner.errors import ExamError
from exam_runner.notifications import Level, Notification, Notifier
from exam_runner.session import ExamSession, SessionState
from exam_runner.state_machine import ExamSnapshot, Phase

logger = logging.getLogger("cli")

_LEVEL_MARKS = {
    Level.INFO: "i",
    Level.SUCCESS: "+",
    Level.WARNING: "!",
    Level.ERROR: "x",
}
_BARS = " ▁▂▃▄▅▆▇█"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Take a timed oral exam from the terminal")
    parser.add_argument("--test-id", required=True, help="Test to take")
    parser.add_argument(
        "--purchase-id",
        help="Approved purchase for the test (not needed with --demo)",
    )
    parser.add_argument("--api-url", help="API base URL (default: EXAM_API_URL)")
    parser.add_argument("--token", help="Bearer token (default: EXAM_API_TOKEN)")
    parser.add_argument("--username", help="Log in with this username or email")
    parser.add_argument("--password", help="Password for --username")
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Keep answers on this machine instead of submitting them",
    )
    parser.add_argument("--device", help="Input device name or index")
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)
    if not args.demo and not args.purchase_id:
        parser.error("--purchase-id is required unless --demo is given")
    if args.username and not args.password:
        parser.error("--password is required with --username")
    return args


def print_notification(notification: Notification) -> None:
    mark = _LEVEL_MARKS[notification.level]
    text = f"[{mark}] {notification.title}"
    if notification.message:
        text += f": {notification.message}"
    print(f"\n{text}", flush=True)


def render(snapshot: ExamSnapshot, waveform: list[float]) -> str:
    if snapshot.question is None:
        return f"[{snapshot.phase.value}]"
    minutes, seconds = divmod(snapshot.remaining, 60)
    bars = "".join(
        _BARS[min(len(_BARS) - 1, int(value * (len(_BARS) - 1) * 4))]
        for value in waveform[-16:]
    )
    recording = "REC " if snapshot.is_recording else ""
    return (
        f"Q{snapshot.index + 1}/{snapshot.total} {snapshot.phase.value:<11} "
        f"{minutes:02d}:{seconds:02d} {recording}{bars}"
    )


def start_stdin_reader(loop: asyncio.AbstractEventLoop, queue: asyncio.Queue) -> None:
    """Forward stdin lines to the loop. Daemon thread so exit never waits on input."""

    def _reader() -> None:
        for line in sys.stdin:
            loop.call_soon_threadsafe(queue.put_nowait, line.strip().lower())
        loop.call_soon_threadsafe(queue.put_nowait, "q")

    threading.Thread(target=_reader, name="stdin-reader", daemon=True).start()


async def run_mic_check(session: ExamSession, commands: asyncio.Queue) -> bool:
    check = session.mic_check
    print(
        "\nMicrophone check: [r]ecord, [s]top, [p]lay back, [a]ccept, [q]uit",
        flush=True,
    )
    while not check.passed:
        command = await commands.get()
        try:
            if command == "r":
                await check.rerecord()
                print("Recording... press s to stop", flush=True)
            elif command == "s":
                recording = await check.stop()
                if recording is not None:
                    print(f"Recorded {recording.duration:.1f}s", flush=True)
            elif command == "p":
                await asyncio.to_thread(check.play)
            elif command == "a":
                check.accept()
                print("Microphone OK", flush=True)
            elif command == "q":
                await check.stop()
                return False
        except ExamError as exc:
            print(f"Microphone check: {exc}", flush=True)
    return True


async def drive_exam(session: ExamSession, commands: asyncio.Queue) -> None:
    print("\nExam started: [n]ext, [p]revious, [q]uit", flush=True)
    finished = asyncio.create_task(session.wait_finished())
    while not finished.done():
        snapshot = session.snapshot()
        if snapshot is not None and snapshot.phase in (Phase.PREPARATION, Phase.SPEAKING):
            print("\r" + render(snapshot, session.recorder.waveform()), end="", flush=True)
        try:
            command = await asyncio.wait_for(commands.get(), timeout=0.25)
        except asyncio.TimeoutError:
            continue
        try:
            if command == "n":
                await session.next_question()
            elif command == "p":
                await session.previous_question()
            elif command == "q":
                await session.cancel()
        except ExamError as exc:
            print(f"\n{exc}", flush=True)
    await finished

    while session.state is SessionState.FINALIZE_FAILED:
        print("\nSubmit failed: [r]etry or [q]uit", flush=True)
        command = await commands.get()
        if command == "r":
            await session.retry_finalize()
        elif command == "q":
            break


async def run_exam(args: argparse.Namespace) -> int:
    settings = RunnerSettings()
    if args.api_url:
        settings.api_url = args.api_url

    client = ExamApiClient(settings.api_url, args.token or settings.api_token, settings.http_timeout)
    try:
        if args.username:
            await asyncio.to_thread(client.login, args.username, args.password)

        backend = RemoteExamBackend(client)
        if args.demo:
            backend = DemoExamBackend(backend, settings.demo_dir)

        device = int(args.device) if args.device and args.device.isdigit() else args.device
        notifier = Notifier()
        notifier.subscribe(print_notification)
        session = ExamSession(
            backend,
            SoundDeviceInput(settings.sample_rate, settings.channels, device=device),
            test_id=args.test_id,
            purchase_id=args.purchase_id or "demo",
            notifier=notifier,
            settings=settings,
        )

        try:
            questions = await session.load()
        except ExamError:
            return 1
        print(f"Loaded {len(questions)} questions", flush=True)

        commands: asyncio.Queue = asyncio.Queue()
        start_stdin_reader(asyncio.get_running_loop(), commands)

        if not await run_mic_check(session, commands):
            return 1
        try:
            await session.begin()
        except ExamError:
            return 1
        await drive_exam(session, commands)

        summary = session.summary()
        print(
            f"\n{summary['answered']} of {summary['total']} answered; "
            f"state: {session.state.value}",
            flush=True,
        )
        return 0 if session.state is SessionState.COMPLETED else 1
    finally:
        client.close()


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_console_logging(args.log_level)
    sys.exit(asyncio.run(run_exam(args)))


if __name__ == "__main__":
    main()
