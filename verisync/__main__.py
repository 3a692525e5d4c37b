# verisync/__main__.py
"""
Main entry point so the CLI can be started with `python -m verisync`.
"""
from verisync.cli import main

if __name__ == "__main__":
    main()
