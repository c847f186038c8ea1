"""
SheetsDcStore -- saved DCs in a spreadsheet behind a web-app endpoint.

Protocol:
    GET  <url>                      -> {"success", "message", "data": [payload, ...]}
    POST <url>  payload=<json text> -> {"success", "message"}

The POST body is form-encoded with one ``payload`` field holding
``{"action": "appendDC" | "updateDC" | "deleteDC", "data": ...}``.

Failure modes:
    - ConfigurationError: no endpoint URL configured (raised per call, so
      an unconfigured store can still be constructed and inspected).
    - TransportError: network failure, non-2xx status, a body that is not
      JSON, or ``success: false``.
    - DcNotFoundError: update/delete answered "DC not found with id: ...".

Stored rows that cannot be decoded are skipped with a warning.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from challan_kernel.domain.challan import SavedDc
from challan_kernel.exceptions import ConfigurationError, DcNotFoundError, TransportError
from challan_kernel.logging_config import get_logger
from challan_storage.row_codec import decode_records, to_payload

logger = get_logger("storage.sheets")

DEFAULT_TIMEOUT = 30.0

ACTION_APPEND = "appendDC"
ACTION_UPDATE = "updateDC"
ACTION_DELETE = "deleteDC"

# rejection message for an id with no row; a missing sheet is reported differently
NOT_FOUND_PREFIX = "dc not found"


class SheetsDcStore:
    """``DcStore`` backed by the spreadsheet web app."""

    def __init__(
        self,
        url: str | None,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._url = (url or "").strip()
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    @property
    def is_configured(self) -> bool:
        return bool(self._url)

    def configuration_status(self) -> dict[str, Any]:
        return {"configured": self.is_configured, "url": self._url or "Not configured"}

    def _check_configuration(self) -> None:
        if not self.is_configured:
            raise ConfigurationError(
                "storage.sheets_url",
                "deploy the spreadsheet web app and set CHALLAN_STORAGE_URL",
            )

    # -----------------------------------------------------------------
    # Transport
    # -----------------------------------------------------------------

    def _send(self, operation: str, request: httpx.Request) -> dict[str, Any]:
        try:
            response = self._client.send(request)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.error(
                "storage_request_failed",
                extra={"operation": operation, "status_code": status},
            )
            raise TransportError(
                operation, f"HTTP {status} {exc.response.reason_phrase}", status_code=status,
            ) from exc
        except httpx.HTTPError as exc:
            logger.error(
                "storage_request_failed",
                extra={"operation": operation, "error": str(exc)},
            )
            raise TransportError(operation, str(exc)) from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise TransportError(operation, "response is not JSON") from exc
        if not isinstance(body, dict):
            raise TransportError(operation, "response is not a JSON object")
        return body

    def _post(self, operation: str, action: str, data: dict[str, Any], dc_id: str) -> None:
        self._check_configuration()
        request = self._client.build_request(
            "POST",
            self._url,
            data={"payload": json.dumps({"action": action, "data": data})},
        )
        body = self._send(operation, request)
        if body.get("success"):
            return
        message = str(body.get("message") or f"{operation} rejected")
        if action != ACTION_APPEND and message.lower().startswith(NOT_FOUND_PREFIX):
            raise DcNotFoundError(dc_id)
        raise TransportError(operation, message)

    # -----------------------------------------------------------------
    # DcStore
    # -----------------------------------------------------------------

    def list_all(self) -> list[SavedDc]:
        """All stored DCs, most recently saved first."""
        self._check_configuration()
        request = self._client.build_request(
            "GET", self._url, headers={"Accept": "application/json"},
        )
        body = self._send("fetch_dcs", request)
        if not body.get("success"):
            raise TransportError("fetch_dcs", str(body.get("message") or "fetch rejected"))

        data = body.get("data") or []
        if not isinstance(data, list):
            raise TransportError("fetch_dcs", "response data is not a list")
        dcs = decode_records(data)
        dcs.sort(key=lambda dc: dc.saved_at, reverse=True)
        logger.debug("dcs_fetched", extra={"count": len(dcs)})
        return dcs

    def append(self, dc: SavedDc) -> None:
        self._post("save_dc", ACTION_APPEND, to_payload(dc), dc.id)

    def update(self, dc: SavedDc) -> None:
        self._post("update_dc", ACTION_UPDATE, to_payload(dc), dc.id)

    def delete(self, dc_id: str) -> None:
        self._post("delete_dc", ACTION_DELETE, {"id": dc_id}, dc_id)

    def close(self) -> None:
        self._client.close()
