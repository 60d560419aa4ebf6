"""Allow running flatdb as ``python -m flatdb``."""

import sys

from flatdb.adapters.inbound.cli import main

sys.exit(main())
