# Vault - Lookup Helpers
#
# Small pure helpers the password sheet and save-password prompt use on the
# decrypted working set: search filter, hostname from the current URL,
# favicon URL for a website.

from typing import Iterable, List, Optional
from urllib.parse import quote, urlsplit

from .models import Credential

FAVICON_SERVICE = "https://www.google.com/s2/favicons"


def search_credentials(credentials: Iterable[Credential], query: str) -> List[Credential]:
    """Case-insensitive substring match on website or username."""
    q = query.strip().lower()
    return [
        c for c in credentials
        if q in c.website.lower() or q in c.username.lower()
    ]


def website_from_url(url: str) -> Optional[str]:
    """Hostname of an absolute URL, or None if it has none."""
    try:
        hostname = urlsplit(url.strip()).hostname
    except ValueError:
        return None
    return hostname or None


def favicon_url(website: str, size: int = 32) -> str:
    """Favicon service URL for a hostname."""
    return f"{FAVICON_SERVICE}?domain={quote(website, safe='.-')}&sz={size}"
