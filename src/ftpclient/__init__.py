"""
Passive-mode FTP client
ls, mkdir, rmdir, rm, cp and mv against ftp:// URLs
"""

__version__ = '1.0.0'
