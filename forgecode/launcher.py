"""
Launcher: forward every invocation to the installed forge binary.

Arguments pass through untouched and the standard streams are inherited.
Interrupts reaching the wrapper are relayed to the child, and the wrapper
exits with whatever code the child exits with.
"""

import signal
import sys
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from .catalog import artifact_name, detect_host
from .errors import ArtifactNotFound
from .process import ChildProcess, PopenChild

# Exit code when the child has no numeric exit status (killed by a signal)
ABNORMAL_EXIT = 1

FORWARDED_SIGNALS = ("SIGINT", "SIGTERM", "SIGHUP")

REINSTALL_HINT = "Please try reinstalling the package with: pip install --force-reinstall forgecode"

ChildFactory = Callable[[Sequence[str]], ChildProcess]


class LaunchState(str, Enum):
    NOT_STARTED = "not_started"
    SPAWNED = "spawned"
    EXITED = "exited"
    KILLED = "killed"


def artifact_location(root: Optional[Path] = None) -> Path:
    """Installed binary next to this module, independent of the cwd."""
    base = Path(root) if root is not None else Path(__file__).resolve().parent
    return base / artifact_name()


def exit_code_for(returncode: Optional[int]) -> int:
    if returncode is None or returncode < 0:
        return ABNORMAL_EXIT
    return returncode


class Launcher:
    """
    Runs one child and relays signals to it until it exits.

    Args:
        binary: Path to the installed artifact
        child_factory: Builds the ChildProcess for an argv (default PopenChild)
        platform: sys.platform value; SIGINT is left to the console on win32
    """

    def __init__(
        self,
        binary: Path,
        child_factory: ChildFactory = PopenChild,
        platform: str = sys.platform,
    ):
        self.binary = Path(binary)
        self.child_factory = child_factory
        self.platform = platform
        self.state = LaunchState.NOT_STARTED
        self.child: Optional[ChildProcess] = None
        self.forwarded: List[int] = []
        self.pending: List[int] = []

    def _signals(self) -> List[int]:
        sigs = []
        for name in FORWARDED_SIGNALS:
            sig = getattr(signal, name, None)
            if sig is None:
                continue
            # Windows delivers Ctrl+C to the whole console group already
            if sig == signal.SIGINT and self.platform == "win32":
                continue
            sigs.append(sig)
        return sigs

    def _forward(self, signum, _frame=None) -> None:
        if self.child is None or self.child.pid is None:
            # not spawned yet; delivered right after start()
            self.pending.append(signum)
            return
        self._send(signum)

    def _send(self, signum: int) -> None:
        self.forwarded.append(signum)
        try:
            self.child.send_signal(signum)
        except ProcessLookupError:
            # child already gone; wait() will report its status
            pass

    def _flush_pending(self) -> None:
        while self.pending:
            self._send(self.pending.pop(0))

    def _install_handlers(self) -> Dict[int, object]:
        previous = {}
        for sig in self._signals():
            previous[sig] = signal.signal(sig, self._forward)
        if self.platform == "win32":
            previous[signal.SIGINT] = signal.signal(signal.SIGINT, signal.SIG_IGN)
        return previous

    @staticmethod
    def _restore_handlers(previous: Dict[int, object]) -> None:
        for sig, handler in previous.items():
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)

    def run(self, args: Sequence[str]) -> int:
        """
        Spawn the binary with args and block until it exits.

        Returns:
            The child's exit code, or ABNORMAL_EXIT if it died from a signal

        Raises:
            ArtifactNotFound: the binary is not installed
        """
        if not self.binary.exists():
            raise ArtifactNotFound(self.binary)

        self.child = self.child_factory([str(self.binary), *args])
        previous = self._install_handlers()
        try:
            self.child.start()
            self.state = LaunchState.SPAWNED
            self._flush_pending()
            returncode = self.child.wait()
        finally:
            self._restore_handlers(previous)

        if returncode is None or returncode < 0:
            self.state = LaunchState.KILLED
        else:
            self.state = LaunchState.EXITED
        return exit_code_for(returncode)


def run_launcher(
    args: Sequence[str],
    root: Optional[Path] = None,
    child_factory: ChildFactory = PopenChild,
) -> int:
    """Launcher entry body. Returns the process exit code."""
    binary = artifact_location(root)
    try:
        return Launcher(binary, child_factory).run(args)
    except ArtifactNotFound as e:
        print(f"❌ {e}", file=sys.stderr)
        print(REINSTALL_HINT, file=sys.stderr)
        print(f"System information: {detect_host()}", file=sys.stderr)
        return e.exit_code
    except OSError as e:
        print(f"❌ Failed to start {binary}: {e}", file=sys.stderr)
        print(REINSTALL_HINT, file=sys.stderr)
        return ABNORMAL_EXIT
