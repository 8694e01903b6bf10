"""Main entry point for the backend proxy."""
from __future__ import annotations

import sys

from app.startup import run_application


def main() -> None:
    """Application entry point."""
    run_application(sys.argv[1:])


__all__ = ["main"]

if __name__ == "__main__":
    main()
