from __future__ import annotations

from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

_ASYNC_DRIVERS = {
    "postgres": "postgresql+psycopg",
    "postgresql": "postgresql+psycopg",
    "postgresql+asyncpg": "postgresql+psycopg",
    "sqlite": "sqlite+aiosqlite",
}


def normalize_database_url(url: str) -> str:
    """Point DATABASE_URL at an async driver and translate ``ssl=`` into ``sslmode=``."""
    url = (url or "").strip()
    if not url:
        return url

    parts = urlsplit(url)
    scheme = _ASYNC_DRIVERS.get(parts.scheme, parts.scheme)
    if not scheme.startswith("postgresql"):
        # sqlite URLs have an empty netloc that urlunsplit would collapse.
        return scheme + url[len(parts.scheme):]

    query = dict(parse_qsl(parts.query, keep_blank_values=True))
    ssl_key = next((key for key in query if key.lower() == "ssl"), None)
    ssl_val = query.pop(ssl_key, None) if ssl_key else None
    if ssl_val is not None and "sslmode" not in query:
        normalized = ssl_val.lower().strip()
        if normalized in {"0", "false", "no", "off", "disable"}:
            query["sslmode"] = "disable"
        elif normalized in {"require", "verify-ca", "verify-full"}:
            query["sslmode"] = normalized
        else:
            query["sslmode"] = "require"

    new_query = urlencode(query, doseq=True)
    return urlunsplit((scheme, parts.netloc, parts.path, new_query, parts.fragment))
