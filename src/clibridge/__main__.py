"""Allow ``python -m clibridge``."""

from clibridge.app import main

main()
