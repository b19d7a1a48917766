"""
Service layer for the download proxy.

This package wraps the yt-dlp command line tool and shapes its output,
independent of Django request handling. These functions are used by:
- The HTTP views (proxy/views.py)
- The CLI management commands (management/commands/formats.py, fetch.py)
"""
