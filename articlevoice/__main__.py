"""Module entrypoint for running Articlevoice as ``python -m articlevoice``."""

from __future__ import annotations

from articlevoice.cli import main


if __name__ == "__main__":
    main()
