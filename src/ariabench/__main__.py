"""Allow ``python -m ariabench``."""

from ariabench.cli import main

main()
