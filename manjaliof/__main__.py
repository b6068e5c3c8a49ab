"""Allow `python -m manjaliof`."""

from manjaliof.cli import run

run()
