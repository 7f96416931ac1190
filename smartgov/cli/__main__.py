# =============================================================================
# smartgov/cli/__main__.py - Package Entry Point
# =============================================================================
#
# Enables running the CLI package itself as a module:
#     python -m smartgov.cli [up|reset|verify|help]
#
# The migration tool is the only CLI command, so this delegates straight to
# migrate.main() and exits with its return code.
# =============================================================================

"""Allow ``python -m smartgov.cli`` execution."""

import sys

from smartgov.cli.migrate import main

sys.exit(main())
