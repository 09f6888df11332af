import re

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline'; "
        "style-src 'self' 'unsafe-inline' https://fonts.googleapis.com; "
        "font-src 'self' https://fonts.gstatic.com; "
        "img-src 'self' data: blob:; "
        "media-src 'self' blob:; "
        "connect-src 'self'; "
        "frame-ancestors 'none'"
    ),
}


class OriginGuard:
    """Allow-list check for the ``Origin`` request header."""

    def __init__(self, origins: list[str], origin_regex: str | None = None):
        self.origins = frozenset(origins)
        self.origin_regex = re.compile(origin_regex) if origin_regex else None

    def is_allowed(self, origin: str | None) -> bool:
        # Browsers omit Origin on same-origin GETs; "null" comes from sandboxed/file contexts.
        if origin is None:
            return True
        if origin == "null":
            return False
        if origin in self.origins:
            return True
        return bool(self.origin_regex and self.origin_regex.fullmatch(origin))

    def cors_headers(self, origin: str | None) -> dict[str, str]:
        headers = {
            "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type",
            "Access-Control-Max-Age": "86400",
        }
        if self.is_allowed(origin):
            headers["Access-Control-Allow-Origin"] = origin or "*"
            headers["Vary"] = "Origin"
        return headers
