"""HTTP helper utilities for tests."""

from __future__ import annotations

from urllib.parse import urlencode

API = "/api/v1"


def json_headers(auth_token: str | None = None) -> dict[str, str]:
    """Return standard JSON headers.

    Parameters
    ----------
    auth_token:
        Optional bearer token to include.

    Returns
    -------
    dict[str, str]
        HTTP headers dictionary.
    """

    headers = {"Content-Type": "application/json", "Accept": "application/json"}
    if auth_token:
        headers["Authorization"] = f"Bearer {auth_token}"
    return headers


def build_url(path: str, **query: str | int | float | None) -> str:
    """Build an API URL with encoded query parameters.

    Parameters
    ----------
    path:
        Endpoint path relative to the version root, e.g. ``"/cart"``.
    **query:
        Query parameters to append; ``None`` values are dropped.

    Returns
    -------
    str
        Final URL string including encoded query string.
    """

    qs = urlencode({k: v for k, v in query.items() if v is not None})
    url = f"{API}{path}"
    return f"{url}?{qs}" if qs else url
