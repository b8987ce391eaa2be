"""
Console entry points.

`forge` forwards everything to the installed binary; it parses no flags of
its own. `forge-install` runs the install step and takes no arguments.
"""

import argparse
import sys
from typing import List, Optional

from .config import InstallConfig, load_env
from .installer import run_install
from .launcher import run_launcher


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for `forge`: run the installed binary with all args."""
    args = sys.argv[1:] if argv is None else argv
    return run_launcher(args)


def create_install_parser() -> argparse.ArgumentParser:
    return argparse.ArgumentParser(
        prog="forge-install",
        description="Install the forge binary matching this platform",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  FORCE_MUSL=1                 Use the musl build on Linux without probing libc
  FORGE_CHECK_TIMEOUT_SECS=N   Seconds to wait for `forge --version` (default: 5)

Variables may also be set in a .env file in the current directory.
        """,
    )


def install_main(argv: Optional[List[str]] = None) -> int:
    """Entry point for `forge-install`."""
    create_install_parser().parse_args(argv)
    load_env()
    return run_install(InstallConfig.from_current_env())


if __name__ == "__main__":
    sys.exit(main())
