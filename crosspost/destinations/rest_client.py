"""
WordPress REST helpers used while preparing a cross-posted record.

Only read queries are issued from here: the transformer needs to find terms
and users on the destination site by slug, and the REST-backed source
directory reads slugs and post types from the source site.  Delivery of the
final record is someone else's job.

A simple rate limiter keeps the request rate per client under a configured
requests-per-minute budget, and a generic retry wrapper handles transient
network errors and server-side throttling (429 or 5xx).

Usage example::

    from crosspost.models import Destination
    from crosspost.destinations.rest_client import remote_find

    blog = Destination(url="https://shop.example.com", login="bot", password="app-pass")
    terms = remote_find(blog, "categories", ["news", "events"])
    # [{"id": 12, "slug": "news"}, ...]
"""

from __future__ import annotations

import base64
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

import requests

from crosspost.models import Destination
from crosspost.utils.errors import log_message

# Destination REST endpoints cap per_page at 100; batches of 20 slugs keep
# query strings short and match what the destination plugin expects.
PAGE_SIZE = 20

###############################################################################
# Rate limiting and retry utilities
###############################################################################

class RateLimiter:
    """
    Simple time-based rate limiter.  Ensures that no more than ``rpm``
    requests are dispatched per minute.
    """

    def __init__(self, rpm: int = 180) -> None:
        self.rpm = max(1, rpm)
        self.interval = 60.0 / float(self.rpm)
        self._last = 0.0

    def wait(self, time_fn: Callable[[], float] = time.time, sleep_fn: Callable[[float], None] = time.sleep) -> None:
        now = time_fn()
        dt = now - self._last
        if dt < self.interval:
            sleep_fn(self.interval - dt)
        self._last = time_fn()


def destination_headers(destination: Destination) -> Dict[str, str]:
    """
    Construct the default headers for WordPress REST requests.

    :param destination: The site; ``login`` and ``password`` (an application
        password) are sent as HTTP basic credentials when present.
    :return: A dictionary of headers.
    """
    headers = {"Accept": "application/json"}
    if destination.login and destination.password:
        token = base64.b64encode(f"{destination.login}:{destination.password}".encode("utf-8")).decode("ascii")
        headers["Authorization"] = f"Basic {token}"
    return headers


def with_retries(fn: Callable[[], requests.Response], *, max_attempts: int = 3, base_delay: float = 0.7) -> requests.Response:
    """
    Execute a function returning a ``requests.Response``, retrying on
    transient HTTP errors.  Retries are attempted on status codes 429
    (too many requests) and 5xx server errors.  Backoff is exponential.

    :param fn: A zero-argument callable that performs the HTTP request.
    :param max_attempts: Maximum number of attempts before giving up.
    :param base_delay: Base delay in seconds for exponential backoff.
    :return: The successful ``requests.Response``.
    :raises requests.HTTPError: if all attempts fail.
    """
    attempt = 0
    while True:
        try:
            resp = fn()
            resp.raise_for_status()
            return resp
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else 0
            if status not in (429, 500, 502, 503, 504) or attempt >= max_attempts - 1:
                raise
            retry_after = e.response.headers.get("Retry-After")
            if retry_after:
                wait = float(retry_after)
            else:
                wait = base_delay * (2 ** attempt)
            time.sleep(wait)
            attempt += 1
        except requests.RequestException:
            if attempt >= max_attempts - 1:
                raise
            time.sleep(base_delay * (2 ** attempt))
            attempt += 1


_limiter = RateLimiter(180)


def set_rate_limit(rpm: int) -> None:
    """Replace the module limiter, e.g. from the ``rate_limit_rpm`` setting."""
    global _limiter
    _limiter = RateLimiter(rpm)


###############################################################################
# Read helpers
###############################################################################

def get_json(destination: Destination, route: str, params: Optional[Dict[str, Any]] = None) -> Any:
    """
    GET ``/wp-json/<route>`` on ``destination`` and decode the body.

    :raises requests.RequestException: once retries are exhausted.
    """
    url = f"{destination.rest_base}/{route.lstrip('/')}"

    def do_request() -> requests.Response:
        _limiter.wait()
        return requests.get(url, headers=destination_headers(destination), params=params, timeout=30)

    return with_retries(do_request).json()


def _batches(items: List[str], size: int) -> Iterable[List[str]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def remote_find(
    destination: Destination,
    collection: str,
    slugs: Iterable[str],
    *,
    page_size: int = PAGE_SIZE,
) -> List[Dict[str, Any]]:
    """
    Find objects of ``collection`` (``categories``, ``tags``, ``users`` or a
    custom taxonomy's REST base) on ``destination`` whose slug is one of
    ``slugs``.

    Slugs are queried ``page_size`` at a time.  Only exact slug matches are
    returned, as ``{"id": ..., "slug": ...}`` dictionaries.  A failed request
    is logged and treated as "no matches" for its batch.
    """
    wanted = []
    for slug in slugs:
        if slug and slug not in wanted:
            wanted.append(slug)
    found: List[Dict[str, Any]] = []
    for batch in _batches(wanted, page_size):
        params = {"slug": ",".join(batch), "per_page": page_size, "_fields": "id,slug"}
        try:
            payload = get_json(destination, f"wp/v2/{collection}", params)
        except (requests.RequestException, ValueError) as e:
            log_message(f"Lookup of {collection} {batch} on {destination.blog_id} failed: {e}", level="WARNING")
            continue
        if not isinstance(payload, list):
            continue
        for obj in payload:
            if isinstance(obj, dict) and obj.get("slug") in batch and obj.get("id"):
                found.append({"id": int(obj["id"]), "slug": obj["slug"]})
    return found
