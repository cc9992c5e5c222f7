"""Allow ``python -m livestream_bot``."""

from .orchestrator import main

main()
