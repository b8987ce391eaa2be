"""
System information dump printed before installing and after failures.
"""

import platform as _platform
import re
from pathlib import Path
from typing import Callable, List, Optional

from .catalog import LINUX, PlatformKey
from .libc import LibcInfo

OS_RELEASE = Path("/etc/os-release")

_PRETTY_NAME_RE = re.compile(r'^PRETTY_NAME="?([^"\n]+)"?', re.MULTILINE)


def distribution_name(os_release: Path = OS_RELEASE) -> Optional[str]:
    """PRETTY_NAME from os-release, or None if unreadable."""
    try:
        text = os_release.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None
    match = _PRETTY_NAME_RE.search(text)
    return match.group(1).strip() if match else None


def system_info_lines(
    host: PlatformKey,
    libc: Optional[LibcInfo] = None,
    distro: Callable[[], Optional[str]] = distribution_name,
) -> List[str]:
    lines = [
        "System Information:",
        f" - Platform: {host.platform}",
        f" - Architecture: {host.arch}",
        f" - Python: {_platform.python_version()}",
        f" - OS: {_platform.system()} {_platform.release()}",
    ]
    if host.platform == LINUX:
        if libc is not None:
            lines.append(f" - Libc: {libc.describe()}")
        name = distro()
        if name:
            lines.append(f" - Distribution: {name}")
    return lines


def remediation_lines() -> List[str]:
    return [
        "",
        "🔧 Possible solutions:",
        "1. Try using the musl binary, which has fewer system dependencies:",
        "   - Set FORCE_MUSL=1 before installing",
        "2. Update your system's glibc to a newer version",
        "3. Contact support with the following information:",
    ]
