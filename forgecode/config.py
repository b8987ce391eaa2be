"""
Environment parsing and install configuration.

Single place where FORCE_MUSL and friends are read. The installer only
ever sees an InstallConfig value.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_CHECK_TIMEOUT = 5
DEFAULT_FORCE_MUSL = False

PACKAGE_ROOT = Path(__file__).resolve().parent


def parse_bool_env(key: str, default: bool) -> bool:
    """
    Parse a boolean from environment variable.

    Accepts: true, false, 1, 0, yes, no, on, off (case-insensitive).
    Unknown values fall back to default.
    """
    value = os.environ.get(key)
    if value is None:
        return default

    value_lower = value.lower().strip()
    if value_lower in ("true", "1", "yes", "on"):
        return True
    if value_lower in ("false", "0", "no", "off", ""):
        return False
    return default


def get_int_env(key: str, default: int) -> int:
    """Parse a positive integer from environment variable, else default."""
    value = os.environ.get(key)
    if value:
        try:
            parsed = int(value)
        except ValueError:
            return default
        if parsed > 0:
            return parsed
    return default


def load_env(env_file: Optional[Path] = None) -> bool:
    """Load a .env file (cwd by default). Exported variables take precedence."""
    if env_file is None:
        env_file = Path.cwd() / ".env"
    return load_dotenv(env_file, override=False)


@dataclass(frozen=True)
class InstallConfig:
    """
    Everything the installer needs from the outside world.

    Attributes:
        package_root: Directory holding bin/ and the installed artifact
        force_musl: Use the musl build on Linux without probing libc
        check_timeout: Seconds to wait for `<artifact> --version`
    """
    package_root: Path = PACKAGE_ROOT
    force_musl: bool = DEFAULT_FORCE_MUSL
    check_timeout: int = DEFAULT_CHECK_TIMEOUT

    @classmethod
    def from_current_env(cls, package_root: Optional[Path] = None) -> "InstallConfig":
        """
        Create config from current environment variables.

        Environment Variables:
            FORCE_MUSL, FORGE_CHECK_TIMEOUT_SECS
        """
        return cls(
            package_root=Path(package_root) if package_root is not None else PACKAGE_ROOT,
            force_musl=parse_bool_env("FORCE_MUSL", DEFAULT_FORCE_MUSL),
            check_timeout=get_int_env("FORGE_CHECK_TIMEOUT_SECS", DEFAULT_CHECK_TIMEOUT),
        )

    def with_override(
        self,
        package_root: Optional[Path] = None,
        force_musl: Optional[bool] = None,
        check_timeout: Optional[int] = None,
    ) -> "InstallConfig":
        return InstallConfig(
            package_root=Path(package_root) if package_root is not None else self.package_root,
            force_musl=force_musl if force_musl is not None else self.force_musl,
            check_timeout=check_timeout if check_timeout is not None else self.check_timeout,
        )


__all__ = [
    "InstallConfig",
    "PACKAGE_ROOT",
    "DEFAULT_CHECK_TIMEOUT",
    "parse_bool_env",
    "get_int_env",
    "load_env",
]
