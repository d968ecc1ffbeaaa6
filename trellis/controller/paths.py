"""
URL path utilities for route compilation.
"""


def normalize_path(path: str) -> str:
    """
    Normalize one path fragment.

    - "" stays ""
    - a leading "/" is added when missing
    - a trailing "/" is stripped unless the fragment is exactly "/"

    Example:
        normalize_path("a/") -> "/a"
    """
    if not path:
        return ""
    if not path.startswith("/"):
        path = "/" + path
    if path != "/" and path.endswith("/"):
        path = path[:-1]
    return path


def join_paths(*parts: str) -> str:
    """
    Normalize each fragment independently, then concatenate.

    The result is not re-normalized.

    Example:
        join_paths("/api", "/auth", "/login") -> "/api/auth/login"
    """
    return "".join(normalize_path(part) for part in parts)
