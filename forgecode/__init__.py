"""
forgecode - installs and launches the prebuilt forge binary for this host.
"""

from .catalog import CATALOG, LibcVariant, PlatformKey
from .config import InstallConfig
from .errors import (
    ArtifactNotFound,
    CompatibilityFailure,
    CopyFailure,
    ForgeError,
    InstallError,
    LaunchError,
    MissingArtifact,
    UnsupportedArchitecture,
    UnsupportedPlatform,
)
from .installer import Installer, run_install
from .launcher import Launcher, run_launcher

__version__ = "0.1.0"
__all__ = [
    "CATALOG",
    "LibcVariant",
    "PlatformKey",
    "InstallConfig",
    "Installer",
    "Launcher",
    "run_install",
    "run_launcher",
    "ForgeError",
    "InstallError",
    "LaunchError",
    "UnsupportedPlatform",
    "UnsupportedArchitecture",
    "MissingArtifact",
    "CopyFailure",
    "CompatibilityFailure",
    "ArtifactNotFound",
]
