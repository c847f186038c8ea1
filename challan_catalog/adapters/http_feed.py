"""
Published-sheet CSV feed over HTTP.

Fetches the catalog's CSV export URL with ``httpx``.  Any network failure
or non-2xx response is raised as ``TransportError``; nothing is retried.
"""

from __future__ import annotations

import httpx

from challan_catalog.adapters.csv_adapter import parse_csv_rows
from challan_kernel.exceptions import ConfigurationError, TransportError
from challan_kernel.logging_config import get_logger

logger = get_logger("catalog.http_feed")

DEFAULT_TIMEOUT = 30.0


class HttpCsvFeed:
    """Catalog rows from a published CSV URL."""

    def __init__(
        self,
        url: str,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        if not url or not url.strip():
            raise ConfigurationError("catalog.feed_url", "catalog feed URL is not set")
        self._url = url.strip()
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    def fetch_rows(self) -> list[list[str]]:
        try:
            response = self._client.get(self._url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "catalog_fetch_failed",
                extra={"status_code": exc.response.status_code},
            )
            raise TransportError(
                "fetch_catalog",
                f"HTTP {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("catalog_fetch_failed", extra={"error": str(exc)})
            raise TransportError("fetch_catalog", str(exc)) from exc

        rows = parse_csv_rows(response.text)
        logger.info("catalog_fetched", extra={"rows": len(rows)})
        return rows

    def close(self) -> None:
        self._client.close()
