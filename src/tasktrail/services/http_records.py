"""HTTP client for the hosted record service."""

import logging
from dataclasses import asdict
from typing import Any

import requests

from tasktrail.errors import NotFound, RemoteOperationFailed
from tasktrail.services.base import FetchResult, Filter, OrderBy, Paging, Record

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


def error_message(response: requests.Response) -> str:
    """Pull the service's error message out of a failed response."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if message:
            return str(message)
    text = response.text.strip()
    return text or f"HTTP {response.status_code}"


def _returned_record(body: dict[str, Any], request: str) -> Record:
    data = body.get("data")
    if not isinstance(data, dict) or not data:
        raise RemoteOperationFailed(f"{request} returned no record")
    return data


class HttpRecordService:
    """Record service talking JSON to the hosted backend.

    The requests.Session is shared with the hosted identity service, which
    attaches the bearer token after login.
    """

    def __init__(
        self,
        base_url: str,
        client_id: str,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update(
            {"X-Client-Id": client_id, "Accept": "application/json"}
        )
        self.timeout = timeout

    def fetch_records(
        self,
        table: str,
        *,
        fields: list[str] | None = None,
        filter: Filter | None = None,
        paging: Paging | None = None,
        order_by: list[OrderBy] | None = None,
    ) -> FetchResult:
        """Query a table; the body mirrors the service's query contract."""
        params: dict[str, Any] = {}
        if fields:
            params["fields"] = fields
        if filter is not None:
            params["filter"] = filter
        if paging is not None:
            params["pagingInfo"] = asdict(paging)
        if order_by:
            params["orderBy"] = [asdict(o) for o in order_by]

        body = self._request("POST", f"/tables/{table}/query", table=table, json=params)
        return FetchResult(
            data=body.get("data") or [],
            total=int(body.get("totalRecordCount") or 0),
        )

    def fetch_record(self, table: str, record_id: int) -> Record:
        body = self._request(
            "GET", f"/tables/{table}/records/{record_id}", table=table, record_id=record_id
        )
        data = body.get("data")
        if not data:
            raise NotFound(table, record_id)
        return data

    def create_record(self, table: str, record: Record) -> Record:
        body = self._request(
            "POST", f"/tables/{table}/records", table=table, json={"record": record}
        )
        return _returned_record(body, f"POST /tables/{table}/records")

    def update_record(self, table: str, record_id: int, record: Record) -> Record:
        body = self._request(
            "PUT",
            f"/tables/{table}/records/{record_id}",
            table=table,
            record_id=record_id,
            json={"record": record},
        )
        return _returned_record(body, f"PUT /tables/{table}/records/{record_id}")

    def delete_record(self, table: str, record_id: int) -> None:
        self._request(
            "DELETE", f"/tables/{table}/records/{record_id}", table=table, record_id=record_id
        )

    def _request(
        self,
        method: str,
        path: str,
        *,
        table: str,
        record_id: int | None = None,
        json: Any = None,
    ) -> dict[str, Any]:
        """Send one request and decode the JSON envelope.

        Raises:
            NotFound: On HTTP 404 for a point request.
            RemoteOperationFailed: On transport errors or any other failure.
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, json=json, timeout=self.timeout)
        except requests.RequestException as e:
            raise RemoteOperationFailed(f"{method} {path} failed: {e}") from e

        if response.status_code == 404 and record_id is not None:
            raise NotFound(table, record_id)
        if not response.ok:
            raise RemoteOperationFailed(error_message(response))
        if response.status_code == 204 or not response.content:
            return {}
        try:
            body = response.json()
        except ValueError as e:
            raise RemoteOperationFailed(f"Invalid JSON from {method} {path}") from e
        if isinstance(body, dict) and body.get("success") is False:
            raise RemoteOperationFailed(str(body.get("message") or "Request failed"))
        return body if isinstance(body, dict) else {"data": body}
