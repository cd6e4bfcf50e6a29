"""Allow `python -m cliphist`."""
import sys

from cliphist.cli import main

sys.exit(main())
