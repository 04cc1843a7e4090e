"""Allow ``python -m typedbundle``."""

from typedbundle.cli import main

main()
