"""
Profile URL helpers
Pull the X handle and LinkedIn slug out of the URLs given by the caller.
"""
from typing import Optional
from urllib.parse import urlparse

X_HOSTS = ("x.com", "twitter.com")


def _path_parts(url: str) -> Optional[list]:
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if not parsed.scheme or not parsed.hostname:
        return None
    return [p for p in parsed.path.split("/") if p]


def extract_x_username(x_url: Optional[str]) -> Optional[str]:
    """
    ``https://x.com/jdoe`` → ``jdoe``.

    Returns None for empty input, unparseable URLs, hosts other than
    x.com / twitter.com, or a URL without a path.
    """
    if not x_url:
        return None
    parts = _path_parts(x_url.strip())
    if not parts:
        return None
    hostname = urlparse(x_url.strip()).hostname or ""
    if not any(host in hostname for host in X_HOSTS):
        return None
    handle = parts[0].replace("@", "")
    return handle or None


def extract_linkedin_slug(linkedin_url: Optional[str]) -> Optional[str]:
    """``https://www.linkedin.com/in/jane-doe/`` → ``jane-doe``; otherwise None."""
    if not linkedin_url:
        return None
    parts = _path_parts(linkedin_url.strip())
    if not parts:
        return None
    if "in" in parts:
        idx = parts.index("in")
        if idx + 1 < len(parts):
            return parts[idx + 1]
    return None
