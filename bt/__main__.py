"""Allow ``python -m bt``."""

from bt.interfaces.cli.main import main

main()
