"""
Vendor connectors for Marketing Pulse.

Each connector reads its credentials from the environment (.env), calls one
upstream platform and reshapes the response into the dashboard schema for
that source.
"""


class SourceError(Exception):
    """Base error raised by a connector."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"{source}: {message}")


class SourceNotConfigured(SourceError, ValueError):
    """Required credentials are missing from the environment."""

    def __init__(self, source: str, missing: list[str]):
        self.missing = missing
        super().__init__(source, f"Missing credentials: {', '.join(missing)}")


class SourceAPIError(SourceError):
    """The upstream API answered with a non-success status."""

    def __init__(self, source: str, status_code: int, message: str = ""):
        self.status_code = status_code
        super().__init__(source, f"API error {status_code}: {message}".rstrip(": "))


def missing_settings(settings: dict) -> list[str]:
    """Return the names of unset settings, preserving order."""
    return [name for name, value in settings.items() if not value]
