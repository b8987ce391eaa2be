"""
Static catalog of packaged forge binaries.

Maps (platform, arch) and, on Linux, the libc flavor to a release filename.
Adding a platform is a data change here, nothing else.
"""

import platform as _platform
import sys
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import List, Mapping, NamedTuple, Optional, Union

from .errors import UnsupportedArchitecture, UnsupportedPlatform

ARTIFACT_BASENAME = "forge"
BIN_DIR = "bin"

LINUX = "linux"
DARWIN = "darwin"
WINDOWS = "win32"


class LibcVariant(str, Enum):
    GNU = "gnu"
    MUSL = "musl"
    UNKNOWN = "unknown"


class PlatformKey(NamedTuple):
    platform: str
    arch: str

    def __str__(self) -> str:
        return f"{self.platform}/{self.arch}"


CatalogEntry = Union[str, Mapping[LibcVariant, str]]


def _linux(triple_arch: str) -> Mapping[LibcVariant, str]:
    return MappingProxyType({
        LibcVariant.GNU: f"forge-{triple_arch}-unknown-linux-gnu",
        LibcVariant.MUSL: f"forge-{triple_arch}-unknown-linux-musl",
    })


CATALOG: Mapping[PlatformKey, CatalogEntry] = MappingProxyType({
    PlatformKey(DARWIN, "x64"): "forge-x86_64-apple-darwin",
    PlatformKey(DARWIN, "arm64"): "forge-aarch64-apple-darwin",
    PlatformKey(LINUX, "x64"): _linux("x86_64"),
    PlatformKey(LINUX, "arm64"): _linux("aarch64"),
    PlatformKey(WINDOWS, "x64"): "forge-x86_64-pc-windows-msvc.exe",
    PlatformKey(WINDOWS, "arm64"): "forge-aarch64-pc-windows-msvc.exe",
})

# platform.system() -> catalog platform
SYSTEM_MAP = MappingProxyType({
    "Darwin": DARWIN,
    "Linux": LINUX,
    "Windows": WINDOWS,
})

# platform.machine() (lower-cased) -> catalog arch
MACHINE_MAP = MappingProxyType({
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
})


def normalize_host(system: str, machine: str) -> PlatformKey:
    """Translate platform.system()/machine() values into catalog terms."""
    plat = SYSTEM_MAP.get(system, system.lower())
    arch = MACHINE_MAP.get(machine.lower(), machine.lower())
    return PlatformKey(plat, arch)


def detect_host() -> PlatformKey:
    return normalize_host(_platform.system(), _platform.machine())


def supported_platforms() -> List[str]:
    seen: List[str] = []
    for key in CATALOG:
        if key.platform not in seen:
            seen.append(key.platform)
    return seen


def supported_architectures(platform: str) -> List[str]:
    return [key.arch for key in CATALOG if key.platform == platform]


def validate(key: PlatformKey) -> CatalogEntry:
    """
    Return the catalog entry for key.

    Raises:
        UnsupportedPlatform: platform has no entries at all
        UnsupportedArchitecture: platform is known but arch is not
    """
    if key.platform not in supported_platforms():
        raise UnsupportedPlatform(key.platform, supported_platforms())
    entry = CATALOG.get(key)
    if entry is None:
        raise UnsupportedArchitecture(key.platform, key.arch, supported_architectures(key.platform))
    return entry


def lookup(key: PlatformKey, variant: Optional[LibcVariant] = None) -> Optional[str]:
    """
    Filename for key (and variant, for Linux entries).

    Returns None when a Linux entry has no file for the given variant.
    """
    entry = validate(key)
    if isinstance(entry, str):
        return entry
    if variant is None:
        raise ValueError(f"{key} needs a libc variant")
    return entry.get(variant)


def has_variants(key: PlatformKey) -> bool:
    return not isinstance(validate(key), str)


def alternate_variant(variant: LibcVariant) -> LibcVariant:
    """gnu <-> musl; anything else falls back to gnu."""
    return LibcVariant.MUSL if variant == LibcVariant.GNU else LibcVariant.GNU


def packaged_binary_path(root: Path, key: PlatformKey, filename: str) -> Path:
    return Path(root) / BIN_DIR / key.platform / key.arch / filename


def artifact_name(platform: Optional[str] = None) -> str:
    if platform is None:
        platform = WINDOWS if sys.platform == "win32" else sys.platform
    return ARTIFACT_BASENAME + (".exe" if platform == WINDOWS else "")


def artifact_path(root: Path, platform: Optional[str] = None) -> Path:
    return Path(root) / artifact_name(platform)
