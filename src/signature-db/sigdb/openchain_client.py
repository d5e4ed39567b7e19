import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

API_PREFIX = "/signature-database/v1"


class UpstreamError(Exception):
    """Raised when the signature database answers with a non-success status."""

    def __init__(self, status_code: int, message: str = "Failed to fetch from upstream API") -> None:
        super().__init__(f"{message} (HTTP {status_code}).")
        self.status_code = status_code


class OpenchainClient:
    """Thin wrapper around the openchain signature database API.

    Every method performs exactly one HTTP request; there is no retry.
    """

    def __init__(self, base_url: str, timeout: Optional[float] = 10) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def search(self, query: str) -> Dict[str, Any]:
        return self._get("search", {"query": query})

    def lookup(
        self,
        function: Optional[str] = None,
        event: Optional[str] = None,
        filter: Optional[bool] = None,
    ) -> Dict[str, Any]:
        if not function and not event:
            raise ValueError("Either function or event is required for a lookup.")

        params: Dict[str, Any] = {}
        if function:
            params["function"] = function
        if event:
            params["event"] = event
        if filter is not None:
            params["filter"] = str(filter).lower()
        return self._get("lookup", params)

    def stats(self) -> Dict[str, Any]:
        return self._get("stats", {})

    def import_signatures(self, functions: List[str], events: List[str]) -> Dict[str, Any]:
        body = {"function": list(functions), "event": list(events)}
        # Import rejections come back as {"ok": false, "error": ...}, possibly with a 4xx status.
        return self._send("POST", "import", accept_error_payload=True, json=body)

    def _get(self, endpoint: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return self._send("GET", endpoint, params=params)

    def _send(
        self,
        method: str,
        endpoint: str,
        accept_error_payload: bool = False,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{API_PREFIX}/{endpoint}"
        logger.debug("%s %s", method, url)

        response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        if not response.ok:
            logger.error("Upstream %s %s returned HTTP %s", method, endpoint, response.status_code)
            if accept_error_payload:
                payload = self._error_payload(response)
                if payload is not None:
                    return payload
            raise UpstreamError(response.status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            raise ValueError("Failed to parse response from the signature database.") from exc

        if not isinstance(payload, dict):
            raise ValueError("Unexpected response from the signature database.")
        return payload

    def _error_payload(self, response: requests.Response) -> Optional[Dict[str, Any]]:
        try:
            payload = response.json()
        except ValueError:
            return None
        if isinstance(payload, dict) and payload.get("ok") is False and payload.get("error"):
            return payload
        return None
