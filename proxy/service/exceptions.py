"""
Error kinds raised by the service layer.

Each error carries the HTTP status the views answer with, so request
handlers can convert any of them into a JSON error body in one place.
"""


class ProxyError(Exception):
    """Base class for errors that end a proxy request"""

    status_code = 500


class InputError(ProxyError):
    """Raised when a required request parameter is missing or invalid"""

    status_code = 400


class ExternalToolError(ProxyError):
    """Raised when yt-dlp cannot be started or exits with a failure status"""

    pass


class ParseError(ProxyError):
    """Raised when yt-dlp metadata is not a JSON object"""

    pass


class SelectionError(ProxyError):
    """Raised when no format qualifies for the requested selection"""

    pass
