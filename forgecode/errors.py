"""
Exceptions raised by the installer and launcher.

Every failure is fatal to the current operation; entry points turn these
into exit code 1.
"""

from pathlib import Path
from typing import Iterable, Optional


class ForgeError(Exception):
    """Base class for forgecode failures."""

    exit_code = 1


class InstallError(ForgeError):
    """Install step failed; no usable artifact was produced."""

    # Whether the remediation checklist applies to this failure
    needs_remediation = False


class UnsupportedPlatform(InstallError):
    def __init__(self, platform: str, supported: Iterable[str]):
        self.platform = platform
        self.supported = list(supported)
        super().__init__(
            f"Unsupported platform: {platform}. "
            f"Supported platforms: {', '.join(self.supported)}"
        )


class UnsupportedArchitecture(InstallError):
    def __init__(self, platform: str, arch: str, supported: Iterable[str]):
        self.platform = platform
        self.arch = arch
        self.supported = list(supported)
        super().__init__(
            f"Unsupported architecture: {arch} for platform {platform}. "
            f"Supported architectures for {platform}: {', '.join(self.supported)}"
        )


class MissingArtifact(InstallError):
    def __init__(self, path: Path):
        self.path = path
        super().__init__(
            f"Binary not found: {path}\n"
            "If this is a new architecture or platform, please check the repository for updates."
        )


class CopyFailure(InstallError):
    needs_remediation = True

    def __init__(self, source: Path, target: Path, reason: str):
        self.source = source
        self.target = target
        super().__init__(f"Error installing binary {source} -> {target}: {reason}")


class CompatibilityFailure(InstallError):
    """Artifact was copied but does not run on this host."""

    needs_remediation = True

    def __init__(self, message: str, detail: Optional[str] = None):
        self.detail = detail
        super().__init__(message)


class LaunchError(ForgeError):
    """Launcher could not start the installed binary."""


class ArtifactNotFound(LaunchError):
    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Forge binary not found at: {path}")
