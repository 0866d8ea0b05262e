"""Allow ``python -m benchforge``."""

from benchforge.cli.app import main

main()
