"""python -m forgecode: same as the `forge` command."""

import sys

from .cli import main

sys.exit(main())
