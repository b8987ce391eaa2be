"""
Tests for the launcher: artifact lookup, exit codes, signal relay.
"""

import os
import signal
import sys
import time
from pathlib import Path
from typing import Callable, List, Optional

import pytest

from forgecode.launcher import (
    ABNORMAL_EXIT,
    LaunchState,
    Launcher,
    artifact_location,
    exit_code_for,
    run_launcher,
)
from forgecode.process import ChildProcess, PopenChild


class FakeChild(ChildProcess):
    """In-memory ChildProcess; on_wait runs while the 'child' is alive."""

    def __init__(self, argv, exit_code: Optional[int] = 0, on_wait: Optional[Callable] = None):
        self.argv = list(argv)
        self.exit_code = exit_code
        self.on_wait = on_wait
        self.started = False
        self.signals: List[int] = []
        self._returncode: Optional[int] = None

    def start(self) -> None:
        self.started = True

    def wait(self) -> Optional[int]:
        if self.on_wait is not None:
            self.on_wait(self)
        self._returncode = self.exit_code
        return self._returncode

    def send_signal(self, sig: int) -> None:
        self.signals.append(sig)

    @property
    def returncode(self) -> Optional[int]:
        return self._returncode

    @property
    def pid(self) -> Optional[int]:
        return 4242 if self.started else None


class Factory:
    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.children: List[FakeChild] = []

    def __call__(self, argv):
        child = FakeChild(argv, **self.kwargs)
        self.children.append(child)
        return child


@pytest.fixture
def binary(tmp_path: Path) -> Path:
    path = artifact_location(tmp_path)
    path.write_text("")
    return path


# ==================== Artifact Location Tests ====================

class TestArtifactLocation:

    def test_next_to_module_not_cwd(self, tmp_path, monkeypatch):
        import forgecode.launcher
        monkeypatch.chdir(tmp_path)
        expected_dir = Path(forgecode.launcher.__file__).resolve().parent
        assert artifact_location().parent == expected_dir

    def test_missing_binary_exit_code(self, tmp_path, capsys):
        factory = Factory()
        assert run_launcher(["--help"], root=tmp_path, child_factory=factory) == 1
        err = capsys.readouterr().err
        assert str(artifact_location(tmp_path)) in err
        assert "reinstall" in err
        assert "System information:" in err
        assert factory.children == []

    def test_start_failure_exit_code(self, binary, capsys):
        class UnstartableChild(FakeChild):
            def start(self):
                raise PermissionError(13, "Permission denied")

        assert run_launcher([], root=binary.parent, child_factory=UnstartableChild) == 1
        assert "Failed to start" in capsys.readouterr().err


# ==================== Exit Code Tests ====================

class TestExitCodes:

    def test_propagates_child_code(self, binary):
        assert run_launcher([], root=binary.parent, child_factory=Factory(exit_code=42)) == 42

    def test_zero(self, binary):
        assert run_launcher([], root=binary.parent, child_factory=Factory(exit_code=0)) == 0

    def test_killed_by_signal_is_generic_failure(self, binary):
        launcher = Launcher(binary, Factory(exit_code=-9))
        assert launcher.run([]) == ABNORMAL_EXIT
        assert launcher.state == LaunchState.KILLED

    def test_no_code_is_generic_failure(self, binary):
        assert run_launcher([], root=binary.parent, child_factory=Factory(exit_code=None)) == ABNORMAL_EXIT

    @pytest.mark.parametrize("code,expected", [(0, 0), (3, 3), (255, 255), (-2, 1), (None, 1)])
    def test_exit_code_for(self, code, expected):
        assert exit_code_for(code) == expected


# ==================== Argument Tests ====================

class TestArguments:

    def test_args_passed_verbatim(self, binary):
        factory = Factory()
        args = ["chat", "--model", "x y", "", "--", "-v", "ünïcode"]
        Launcher(binary, factory).run(args)
        assert factory.children[0].argv == [str(binary), *args]

    def test_state_machine(self, binary):
        states = []
        launcher = Launcher(binary, Factory(on_wait=lambda child: states.append(launcher.state)))
        assert launcher.state == LaunchState.NOT_STARTED
        launcher.run([])
        assert states == [LaunchState.SPAWNED]
        assert launcher.state == LaunchState.EXITED


# ==================== Signal Relay Tests ====================

@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
class TestSignalRelay:

    def _interrupt(self, child):
        os.kill(os.getpid(), signal.SIGINT)
        for _ in range(100):
            if child.signals:
                break
            time.sleep(0.01)

    def test_sigint_forwarded_and_wrapper_waits(self, binary):
        factory = Factory(exit_code=130, on_wait=self._interrupt)
        launcher = Launcher(binary, factory, platform="linux")
        # KeyboardInterrupt here would mean the wrapper died before the child
        assert launcher.run([]) == 130
        assert factory.children[0].signals == [signal.SIGINT]
        assert launcher.forwarded == [signal.SIGINT]

    def test_sigterm_forwarded(self, binary):
        def terminate(child):
            os.kill(os.getpid(), signal.SIGTERM)
            for _ in range(100):
                if child.signals:
                    break
                time.sleep(0.01)

        factory = Factory(exit_code=143, on_wait=terminate)
        assert Launcher(binary, factory, platform="linux").run([]) == 143
        assert factory.children[0].signals == [signal.SIGTERM]

    def test_handlers_restored(self, binary):
        before = {sig: signal.getsignal(sig) for sig in (signal.SIGINT, signal.SIGTERM, signal.SIGHUP)}
        during = {}

        def record(child):
            during.update({sig: signal.getsignal(sig) for sig in before})

        launcher = Launcher(binary, Factory(on_wait=record), platform="linux")
        launcher.run([])
        assert all(during[sig] == launcher._forward for sig in before)
        assert {sig: signal.getsignal(sig) for sig in before} == before

    def test_windows_leaves_sigint_to_console(self, binary):
        before = signal.getsignal(signal.SIGINT)
        during = {}

        def record(child):
            during["int"] = signal.getsignal(signal.SIGINT)

        launcher = Launcher(binary, Factory(on_wait=record), platform="win32")
        launcher.run([])
        assert during["int"] == signal.SIG_IGN
        assert signal.getsignal(signal.SIGINT) == before


# ==================== Real Process Tests ====================

@pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX shell scripts")
class TestRealProcess:

    def _script(self, tmp_path: Path, body: str) -> Path:
        path = artifact_location(tmp_path)
        path.write_text("#!/bin/sh\n" + body)
        path.chmod(0o755)
        return path

    def test_exit_code_42(self, tmp_path):
        self._script(tmp_path, "exit 42\n")
        assert run_launcher([], root=tmp_path) == 42

    def test_arguments_reach_child(self, tmp_path):
        out = tmp_path / "args.txt"
        self._script(tmp_path, f'for a in "$@"; do printf "%s\\n" "$a" >> "{out}"; done\n')
        assert run_launcher(["one", "two words", "--flag"], root=tmp_path) == 0
        assert out.read_text().splitlines() == ["one", "two words", "--flag"]

    def test_child_killed_by_signal(self, tmp_path):
        self._script(tmp_path, "kill -KILL $$\n")
        assert run_launcher([], root=tmp_path) == ABNORMAL_EXIT

    def test_interrupt_reaches_real_child(self, tmp_path):
        marker = tmp_path / "got-int"
        ready = tmp_path / "ready"
        self._script(
            tmp_path,
            f'trap \'touch "{marker}"; exit 7\' INT\n'
            f'touch "{ready}"\n'
            "i=0\n"
            "while [ $i -lt 100 ]; do sleep 0.1; i=$((i+1)); done\n"
            "exit 0\n",
        )

        def interrupt_when_ready(child):
            for _ in range(200):
                if ready.exists():
                    break
                time.sleep(0.01)
            os.kill(os.getpid(), signal.SIGINT)
            return PopenChild.wait(child)

        class ReadyChild(PopenChild):
            def wait(self):
                return interrupt_when_ready(self)

        launcher = Launcher(artifact_location(tmp_path), ReadyChild, platform="linux")
        assert launcher.run([]) == 7
        assert marker.exists()


# ==================== Early Signal Tests ====================

@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
class TestSignalBeforeSpawn:

    def test_signal_during_start_is_delivered(self, binary):
        class SlowStartChild(FakeChild):
            def start(self):
                # interrupt lands while the child has no pid yet
                signal.getsignal(signal.SIGINT)(signal.SIGINT, None)
                super().start()

        children = []

        def factory(argv):
            child = SlowStartChild(argv, exit_code=130)
            children.append(child)
            return child

        launcher = Launcher(binary, factory, platform="linux")
        assert launcher.run([]) == 130
        assert children[0].signals == [signal.SIGINT]
        assert launcher.pending == []
        assert launcher.forwarded == [signal.SIGINT]
