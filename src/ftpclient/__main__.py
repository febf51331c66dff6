"""
Main entry point for FTP client application
"""

from .ui.cli import main

if __name__ == '__main__':
    raise SystemExit(main())
