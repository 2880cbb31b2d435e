"""Allow ``python -m hongdown``."""

from __future__ import annotations

import sys

from hongdown.cli import main

sys.exit(main())
