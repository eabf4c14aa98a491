import io
import subprocess
import unittest
from contextlib import redirect_stderr
from unittest.mock import patch

from opencode_resume.config import ResumeConfig
from opencode_resume.server import (
    ServerStartError,
    build_serve_command,
    ensure_server_running,
    start_server,
    wait_for_server,
)


class _PingClient:
    def __init__(self, answers) -> None:  # noqa: ANN001
        self._answers = list(answers)
        self.pings = 0
        self.config = ResumeConfig()

    def ping(self) -> bool:
        self.pings += 1
        return self._answers.pop(0) if self._answers else False


class _Clock:
    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, s: float) -> None:
        self.sleeps.append(s)
        self.now += s


class TestServeCommand(unittest.TestCase):
    def test_build(self) -> None:
        self.assertEqual(build_serve_command("/bin/opencode"), ["/bin/opencode", "serve"])
        self.assertEqual(build_serve_command("oc", port=4096), ["oc", "serve", "--port", "4096"])

    def test_start_server_detaches(self) -> None:
        with patch("opencode_resume.server.subprocess.Popen") as popen:
            start_server(["oc", "serve"])
        kwargs = popen.call_args[1]
        self.assertTrue(kwargs["start_new_session"])
        self.assertIs(kwargs["stdout"], subprocess.DEVNULL)
        self.assertIs(kwargs["stderr"], subprocess.DEVNULL)

    def test_start_server_missing_binary(self) -> None:
        with patch("opencode_resume.server.subprocess.Popen", side_effect=FileNotFoundError("oc")):
            with self.assertRaises(ServerStartError):
                start_server(["oc", "serve"])


class TestWaitForServer(unittest.TestCase):
    def test_returns_once_reachable(self) -> None:
        clock = _Clock()
        client = _PingClient([False, False, True])
        wait_for_server(client, timeout_s=5.0, sleep=clock.sleep, monotonic=clock.monotonic)
        self.assertEqual(client.pings, 3)
        self.assertEqual(clock.sleeps, [0.2, 0.2])

    def test_times_out(self) -> None:
        clock = _Clock()
        with self.assertRaises(ServerStartError):
            wait_for_server(_PingClient([]), timeout_s=1.0, sleep=clock.sleep, monotonic=clock.monotonic)
        self.assertGreaterEqual(clock.now, 1.0)


class TestEnsureServerRunning(unittest.TestCase):
    def test_already_running(self) -> None:
        with patch("opencode_resume.server.start_server") as start:
            started = ensure_server_running(_PingClient([True]), opencode_path="oc")
        self.assertFalse(started)
        start.assert_not_called()

    def test_starts_and_waits(self) -> None:
        clock = _Clock()
        client = _PingClient([False, False, True])
        buf = io.StringIO()
        with patch("opencode_resume.server.start_server") as start, redirect_stderr(buf):
            started = ensure_server_running(
                client, opencode_path="oc", port=5000, sleep=clock.sleep, monotonic=clock.monotonic
            )
        self.assertTrue(started)
        start.assert_called_once_with(["oc", "serve", "--port", "5000"])
        self.assertIn("Starting opencode server", buf.getvalue())

    def test_start_failure_propagates(self) -> None:
        clock = _Clock()
        with patch("opencode_resume.server.start_server"), redirect_stderr(io.StringIO()):
            with self.assertRaises(ServerStartError):
                ensure_server_running(
                    _PingClient([]), opencode_path="oc", timeout_s=0.5, sleep=clock.sleep, monotonic=clock.monotonic
                )


if __name__ == "__main__":
    unittest.main()
