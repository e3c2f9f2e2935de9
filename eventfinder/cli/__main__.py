"""Allow ``python -m eventfinder.cli`` execution (runs the search command)."""

import sys

from eventfinder.cli.search import main

sys.exit(main())
