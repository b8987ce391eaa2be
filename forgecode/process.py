"""
Child-process handle used by the launcher.

The launcher only talks to ChildProcess, so tests can hand it a fake.
"""

import subprocess
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence


class ChildProcess(ABC):
    """A single spawned child: start, wait, signal, exit code."""

    @abstractmethod
    def start(self) -> None:
        pass

    @abstractmethod
    def wait(self) -> Optional[int]:
        """Block until the child exits; return its exit code."""

    @abstractmethod
    def send_signal(self, sig: int) -> None:
        pass

    @property
    @abstractmethod
    def returncode(self) -> Optional[int]:
        pass

    @property
    @abstractmethod
    def pid(self) -> Optional[int]:
        pass


class PopenChild(ChildProcess):
    """
    ChildProcess backed by subprocess.Popen.

    No pipes: stdin/stdout/stderr are inherited from the parent, so the
    child sees the same terminal.
    """

    def __init__(self, argv: Sequence[str]):
        self.argv: List[str] = [str(a) for a in argv]
        self._proc: Optional[subprocess.Popen] = None

    def start(self) -> None:
        if self._proc is not None:
            raise RuntimeError("child already started")
        self._proc = subprocess.Popen(self.argv)

    def wait(self) -> Optional[int]:
        if self._proc is None:
            raise RuntimeError("child not started")
        return self._proc.wait()

    def send_signal(self, sig: int) -> None:
        # Popen.send_signal is a no-op once the child has been reaped
        if self._proc is not None:
            self._proc.send_signal(sig)

    @property
    def returncode(self) -> Optional[int]:
        return self._proc.returncode if self._proc is not None else None

    @property
    def pid(self) -> Optional[int]:
        return self._proc.pid if self._proc is not None else None
