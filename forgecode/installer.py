"""
Install step: pick the packaged forge binary for this host and put it in place.

Selection on Linux prefers the musl build (it runs nearly everywhere),
then the build matching the detected libc, then the other flavor. After
copying, Linux hosts run `forge --version` once; a glibc symbol-version
error swaps in the musl build and checks again. That retry only goes
gnu -> musl.
"""

import os
import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from .catalog import (
    LINUX,
    WINDOWS,
    LibcVariant,
    PlatformKey,
    alternate_variant,
    artifact_path,
    detect_host,
    has_variants,
    lookup,
    packaged_binary_path,
    validate,
)
from .config import InstallConfig
from .errors import CompatibilityFailure, CopyFailure, InstallError, MissingArtifact
from .libc import LibcInfo, Runner, detect_variant, preferred_variant, run_command
from .logger import get_logger
from .sysinfo import remediation_lines, system_info_lines

logger = get_logger("forgecode.installer")

# stderr markers of a glibc too old for the binary's symbol versions
LIBRARY_MISMATCH_MARKERS = ("GLIBC_", "GLIBCXX_")


@dataclass(frozen=True)
class Candidate:
    filename: str
    path: Path
    variant: Optional[LibcVariant] = None


@dataclass(frozen=True)
class CheckResult:
    ok: bool
    returncode: Optional[int] = None
    stderr: str = ""

    @property
    def library_mismatch(self) -> bool:
        return any(marker in self.stderr for marker in LIBRARY_MISMATCH_MARKERS)

    @property
    def first_line(self) -> str:
        lines = self.stderr.strip().splitlines()
        return lines[0] if lines else f"exit code {self.returncode}"


Checker = Callable[[Path, float], CheckResult]


def check_binary(path: Path, timeout: float) -> CheckResult:
    """Run `<path> --version` and report whether it exited cleanly."""
    try:
        r = subprocess.run(
            [str(path), "--version"],
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        logger.warning(f"⚠ Binary test timed out after {timeout}s")
        return CheckResult(False, None, f"timed out after {timeout}s")
    except OSError as e:
        logger.warning(f"⚠ Binary test failed: {e}")
        return CheckResult(False, None, str(e))

    result = CheckResult(r.returncode == 0, r.returncode, r.stderr or "")
    if not result.ok and result.library_mismatch:
        logger.warning(f"⚠ Binary compatibility issue: {result.first_line}")
    return result


class Installer:
    """
    Installs the forge binary for one host.

    Args:
        config: Explicit configuration (package root, FORCE_MUSL, timeout)
        host: Platform key; detected from the running interpreter if omitted
        libc: Known libc; probed lazily on Linux if omitted
        checker: Runs the copied artifact; see check_binary
        libc_runner: Command runner used for libc probing
    """

    def __init__(
        self,
        config: InstallConfig,
        host: Optional[PlatformKey] = None,
        libc: Optional[LibcInfo] = None,
        checker: Checker = check_binary,
        libc_runner: Runner = run_command,
    ):
        self.config = config
        self.host = host or detect_host()
        self._libc = libc
        self._libc_runner = libc_runner
        self.checker = checker
        self.installed: Optional[Candidate] = None

    @property
    def target(self) -> Path:
        return artifact_path(self.config.package_root, self.host.platform)

    @property
    def libc(self) -> Optional[LibcInfo]:
        if self._libc is None and self.host.platform == LINUX:
            self._libc, _ = detect_variant(self._libc_runner)
        return self._libc

    def _candidate(self, variant: Optional[LibcVariant]) -> Optional[Candidate]:
        filename = lookup(self.host, variant)
        if filename is None:
            return None
        path = packaged_binary_path(self.config.package_root, self.host, filename)
        return Candidate(filename, path, variant)

    def select_candidate(self) -> Candidate:
        """
        Choose which packaged binary to install.

        Raises:
            UnsupportedPlatform / UnsupportedArchitecture: host not in catalog
        """
        validate(self.host)
        if not has_variants(self.host):
            return self._candidate(None)

        if self.config.force_musl:
            logger.info("🔧 FORCE_MUSL=1 detected, forcing musl binary")
            return self._candidate(LibcVariant.MUSL)

        musl = self._candidate(LibcVariant.MUSL)
        if musl is not None and musl.path.exists():
            logger.info("📦 Found musl binary, which should work on most Linux systems")
            return musl

        variant = preferred_variant(self.libc)
        chosen = self._candidate(variant)
        if chosen is None:
            variant = alternate_variant(variant)
            logger.warning(f"⚠ Detected libc type is not supported, trying {variant.value} instead")
            chosen = self._candidate(variant)

        if not chosen.path.exists():
            alternate = self._candidate(alternate_variant(variant))
            if alternate is not None and alternate.path.exists():
                logger.warning(
                    f"⚠ Binary for {variant.value} not found, trying {alternate.variant.value} instead"
                )
                chosen = alternate
        return chosen

    def _copy(self, candidate: Candidate) -> None:
        target = self.target
        try:
            shutil.copyfile(candidate.path, target)
            if self.host.platform != WINDOWS:
                os.chmod(target, 0o755)
        except OSError as e:
            raise CopyFailure(candidate.path, target, str(e)) from e

    def _fall_back_to_musl(self, failed: Candidate, result: CheckResult) -> Candidate:
        if failed.variant != LibcVariant.GNU or not result.library_mismatch:
            raise CompatibilityFailure("Binary compatibility test failed.", result.stderr)

        musl = self._candidate(LibcVariant.MUSL)
        if musl is None or not musl.path.exists():
            raise CompatibilityFailure(
                "GNU binary not compatible, and musl binary not available.", result.stderr
            )

        logger.info("🔄 GNU binary not compatible, trying musl binary instead")
        self._copy(musl)
        retry = self.checker(self.target, self.config.check_timeout)
        if not retry.ok:
            raise CompatibilityFailure(
                "Both GNU and musl binaries failed to run on this system.", retry.stderr
            )
        return musl

    def install(self) -> Path:
        """
        Copy the selected binary to the artifact path and verify it.

        Returns:
            Path to the installed artifact

        Raises:
            InstallError: any of its subclasses; nothing is left half-done
            that a rerun would not overwrite
        """
        candidate = self.select_candidate()
        if not candidate.path.exists():
            raise MissingArtifact(candidate.path)

        self._copy(candidate)

        if self.host.platform == LINUX:
            logger.info("🧪 Testing binary compatibility...")
            result = self.checker(self.target, self.config.check_timeout)
            if not result.ok:
                candidate = self._fall_back_to_musl(candidate, result)

        self.installed = candidate
        logger.info(f"✓ Successfully installed forge for {self.host}")
        return self.target

    def system_info(self) -> list:
        # FORCE_MUSL skips libc probing; only show a libc that is already known
        libc = self._libc if self.config.force_musl else self.libc
        return system_info_lines(self.host, libc)


def run_install(
    config: Optional[InstallConfig] = None,
    host: Optional[PlatformKey] = None,
    libc: Optional[LibcInfo] = None,
    checker: Checker = check_binary,
    libc_runner: Runner = run_command,
) -> int:
    """Install hook body. Returns the process exit code."""
    config = config or InstallConfig.from_current_env()
    installer = Installer(config, host=host, libc=libc, checker=checker, libc_runner=libc_runner)

    for line in installer.system_info():
        logger.info(line)

    try:
        installer.install()
    except InstallError as e:
        logger.error(f"❌ {e}")
        if e.needs_remediation:
            for line in remediation_lines() + installer.system_info():
                logger.error(line)
        return e.exit_code
    return 0


if __name__ == "__main__":
    from .cli import install_main

    sys.exit(install_main())
