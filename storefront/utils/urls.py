# storefront/utils/urls.py
from urllib.parse import quote

from storefront.utils.settings import APP_URL


def public_url(path: str, base_url: str | None = None) -> str:
    """
    Turns a stored upload path into a url the outside world can fetch.

    Every path segment is percent-encoded on its own, separators stay as they
    are ("uploads/try-on/White Tee.jpg" -> "/uploads/try-on/White%20Tee.jpg").
    Absolute http(s) urls are returned untouched.
    """
    if not path:
        return ""
    if path.startswith("http://") or path.startswith("https://"):
        return path

    base = (base_url or APP_URL).rstrip("/")
    clean = path if path.startswith("/") else f"/{path}"
    clean = "/".join(quote(segment, safe="") for segment in clean.split("/"))
    return f"{base}{clean}"
