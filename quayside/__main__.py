"""Allow ``python -m quayside``."""

from __future__ import annotations

import sys

from quayside.cli import main

sys.exit(main())
