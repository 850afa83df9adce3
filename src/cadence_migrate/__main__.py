"""Allow ``python -m cadence_migrate``."""
import sys

from cadence_migrate.cli import main

sys.exit(main())
