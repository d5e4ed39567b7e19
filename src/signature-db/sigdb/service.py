import logging
from dataclasses import asdict
from typing import Any, Dict, Optional

import requests

from .classifier import HashQuery, InvalidQuery, classify
from .config import Config
from .models import (
    ImportOutcome,
    SignatureStats,
    flatten_results,
    import_rows,
    summarize,
    summary_message,
)
from .normalizer import SignatureImportRequest, build_import_request, selector, topic
from .openchain_client import OpenchainClient, UpstreamError

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "Failed to fetch results."
FETCH_RETRY_MESSAGE = "Failed to fetch results, please try again."
EMPTY_IMPORT_MESSAGE = "The import data field is empty, please provide some data."
NO_SIGNATURES_MESSAGE = "No signatures found in the import data."


class FetchError(RuntimeError):
    """An upstream call failed; the message is safe to show to users."""


class SignatureService:
    """Combine configuration, classifier, normalizer and client to serve signature queries."""

    def __init__(self, config: Config, client: Optional[OpenchainClient] = None) -> None:
        self.config = config
        self.client = client or OpenchainClient(
            base_url=config.base_url,
            timeout=config.request_timeout,
        )

    def resolve_query(self, query: str, filter: Optional[bool] = None) -> Dict[str, Any]:
        """Classify ``query`` and run either a text search or a hash lookup."""
        classified = classify(query)
        if isinstance(classified, InvalidQuery):
            raise ValueError(classified.reason)
        if isinstance(classified, HashQuery):
            return self._lookup(classified, filter)
        return self.search(classified.term)

    def search(self, term: str) -> Dict[str, Any]:
        normalized = (term or "").strip()
        if not normalized:
            raise ValueError("Please enter a search query.")

        payload = self._call(self.client.search, normalized)
        return self._results_response(normalized, "search", payload)

    def lookup_hash(self, hex_value: str, filter: Optional[bool] = None) -> Dict[str, Any]:
        classified = classify(hex_value)
        if isinstance(classified, InvalidQuery):
            raise ValueError(classified.reason)
        if not isinstance(classified, HashQuery):
            raise ValueError(f"'{hex_value.strip()}' is not a 4-byte selector or 32-byte topic hash.")
        return self._lookup(classified, filter)

    def get_stats(self) -> SignatureStats:
        payload = self._call(self.client.stats)
        return SignatureStats.from_payload(payload)

    def preview_import(self, raw_text: str) -> Dict[str, Any]:
        request = self.prepare_import(raw_text)
        return {
            "request": request.to_dict(),
            "function": {signature: selector(signature) for signature in request.function},
            "event": {signature: topic(signature) for signature in request.event},
        }

    def import_signatures(self, raw_text: str) -> Dict[str, Any]:
        request = self.prepare_import(raw_text)
        payload = self._call(self.client.import_signatures, request.function, request.event)

        if not payload.get("ok"):
            detail = payload.get("error") or "Import failed"
            raise FetchError(f"An error occurred: {detail}")

        outcome = ImportOutcome.from_payload(payload.get("result"))
        return {
            "request": request.to_dict(),
            "result": outcome.to_dict(),
            "counts": summarize(outcome),
            "message": summary_message(outcome),
            "rows": [asdict(row) for row in import_rows(outcome)],
        }

    def prepare_import(self, raw_text: str) -> SignatureImportRequest:
        text = (raw_text or "").strip()
        if not text:
            raise ValueError(EMPTY_IMPORT_MESSAGE)

        request = build_import_request(text)
        if request.is_empty():
            raise ValueError(NO_SIGNATURES_MESSAGE)
        return request

    def _lookup(self, classified: HashQuery, filter: Optional[bool]) -> Dict[str, Any]:
        # Query both categories; the server only answers for the ones that match.
        hex_value = classified.normalized_hex
        payload = self._call(self.client.lookup, hex_value, hex_value, filter)
        response = self._results_response(hex_value, "lookup", payload)
        response["selector_type"] = classified.selector_type
        return response

    def _results_response(self, query: str, search_type: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        results = flatten_results(payload)
        return {
            "query": query,
            "search_type": search_type,
            "results": [result.to_dict() for result in results],
            "total": len(results),
        }

    def _call(self, method, *args: Any) -> Dict[str, Any]:
        try:
            return method(*args)
        except UpstreamError as exc:
            logger.error("Signature database request failed: %s", exc)
            raise FetchError(FETCH_FAILED_MESSAGE) from exc
        except (requests.RequestException, ValueError) as exc:
            logger.error("Signature database request raised: %s", exc)
            raise FetchError(FETCH_RETRY_MESSAGE) from exc
