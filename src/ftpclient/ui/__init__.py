"""
User Interface module
Provides the command-line front end for the FTP client
"""

from .cli import main

__all__ = ['main']
