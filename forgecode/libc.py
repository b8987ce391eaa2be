"""
C library detection for Linux hosts.

Asks the dynamic loader (`ldd --version`) and falls back to
`getconf GNU_LIBC_VERSION`. Old glibc is treated like musl, since the
glibc builds need at least MIN_GLIBC.
"""

import re
import subprocess
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from .catalog import LibcVariant
from .logger import get_logger

logger = get_logger("forgecode.libc")

MIN_GLIBC: Tuple[int, int] = (2, 32)
PROBE_TIMEOUT = 5

_VERSION_RE = re.compile(r"\b(\d+\.\d+)\b")

# (argv, timeout) -> CompletedProcess; raises OSError if the tool is missing
Runner = Callable[[List[str], float], "subprocess.CompletedProcess[str]"]


@dataclass(frozen=True)
class LibcInfo:
    variant: LibcVariant
    version: Optional[str] = None

    def describe(self) -> str:
        if self.version:
            return f"{self.variant.value} version {self.version}"
        return self.variant.value


def run_command(argv: List[str], timeout: float) -> "subprocess.CompletedProcess[str]":
    return subprocess.run(argv, capture_output=True, text=True, errors="replace", timeout=timeout)


def parse_loader_output(text: str) -> Optional[LibcInfo]:
    """
    Interpret `ldd --version` output.

    A musl marker wins over any version number in the text.
    """
    if not text:
        return None
    if "musl" in text.lower():
        return LibcInfo(LibcVariant.MUSL)
    match = _VERSION_RE.search(text)
    if match:
        return LibcInfo(LibcVariant.GNU, match.group(1))
    return None


def _output(result: "subprocess.CompletedProcess[str]") -> str:
    # musl's ldd prints its banner on stderr and exits 1
    return (result.stderr or "") + (result.stdout or "")


def probe_libc(runner: Runner = run_command) -> LibcInfo:
    loader_ran = False
    try:
        info = parse_loader_output(_output(runner(["ldd", "--version"], PROBE_TIMEOUT)))
        loader_ran = True
        if info is not None:
            return info
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("ldd --version failed: %s", e)

    try:
        result = runner(["getconf", "GNU_LIBC_VERSION"], PROBE_TIMEOUT)
        match = _VERSION_RE.search(result.stdout or "")
        if match:
            return LibcInfo(LibcVariant.GNU, match.group(1))
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("getconf GNU_LIBC_VERSION failed: %s", e)

    if loader_ran:
        return LibcInfo(LibcVariant.GNU)
    logger.warning("⚠ Could not detect libc version details.")
    return LibcInfo(LibcVariant.UNKNOWN)


def _version_tuple(version: str) -> Tuple[int, ...]:
    return tuple(int(part) for part in version.split("."))


def is_glibc_sufficient(version: Optional[str], minimum: Tuple[int, int] = MIN_GLIBC) -> bool:
    if not version:
        return False
    try:
        return _version_tuple(version) >= minimum
    except ValueError:
        return False


def preferred_variant(info: LibcInfo) -> LibcVariant:
    """Variant to install for this libc: musl unless glibc is new enough."""
    if info.variant == LibcVariant.MUSL:
        return LibcVariant.MUSL
    if info.variant == LibcVariant.GNU and not is_glibc_sufficient(info.version):
        return LibcVariant.MUSL
    return info.variant


def detect_variant(runner: Runner = run_command) -> Tuple[LibcInfo, LibcVariant]:
    info = probe_libc(runner)
    logger.info(f"🔍 Detected libc: {info.describe()}")
    return info, preferred_variant(info)
