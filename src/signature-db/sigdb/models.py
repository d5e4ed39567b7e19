from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

CATEGORIES = ("function", "event")


@dataclass(frozen=True)
class SearchResult:
    name: str
    hex_signature: str
    filtered: bool
    type: str
    has_verified_contract: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ImportDetails:
    imported: Dict[str, str] = field(default_factory=dict)
    duplicated: Dict[str, str] = field(default_factory=dict)
    invalid: List[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> "ImportDetails":
        if not isinstance(payload, dict):
            return cls()
        return cls(
            imported=dict(payload.get("imported") or {}),
            duplicated=dict(payload.get("duplicated") or {}),
            invalid=list(payload.get("invalid") or []),
        )


@dataclass
class ImportOutcome:
    function: ImportDetails = field(default_factory=ImportDetails)
    event: ImportDetails = field(default_factory=ImportDetails)

    @classmethod
    def from_payload(cls, payload: Any) -> "ImportOutcome":
        if not isinstance(payload, dict):
            return cls()
        return cls(
            function=ImportDetails.from_payload(payload.get("function")),
            event=ImportDetails.from_payload(payload.get("event")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ImportRow:
    signature: str
    hash: str
    type: str
    status: str  # imported | duplicated | invalid


@dataclass(frozen=True)
class SignatureStats:
    function: Optional[int] = None
    event: Optional[int] = None
    error: Optional[int] = None
    unknown: Optional[int] = None
    total: Optional[int] = None
    refreshed_at: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "SignatureStats":
        result = payload.get("result") if isinstance(payload, dict) else None
        if not isinstance(result, dict):
            raise ValueError("Unexpected stats response from the signature database.")

        count = result.get("count") or {}
        metadata = result.get("metadata") or {}
        return cls(
            function=_optional_int(count.get("function")),
            event=_optional_int(count.get("event")),
            error=_optional_int(count.get("error")),
            unknown=_optional_int(count.get("unknown")),
            total=_optional_int(count.get("total")),
            refreshed_at=metadata.get("refreshed_at"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def flatten_results(payload: Any) -> List[SearchResult]:
    """Flatten the hash-keyed ``{function: {hex: [...]}, event: {...}}`` grouping.

    Function results come before event results; the server's ordering is kept
    inside each hash bucket.
    """
    result = payload.get("result") if isinstance(payload, dict) else None
    if not isinstance(result, dict):
        return []

    flattened: List[SearchResult] = []
    for category in CATEGORIES:
        buckets = result.get(category) or {}
        if not isinstance(buckets, dict):
            continue
        for hex_signature, entries in buckets.items():
            for entry in entries or []:
                if not isinstance(entry, dict):
                    continue
                flattened.append(
                    SearchResult(
                        name=str(entry.get("name", "")),
                        hex_signature=hex_signature,
                        filtered=bool(entry.get("filtered", False)),
                        type=category,
                        has_verified_contract=entry.get("hasVerifiedContract"),
                    )
                )
    return flattened


def summarize(outcome: ImportOutcome) -> Dict[str, Dict[str, int]]:
    return {
        category: {
            "imported": len(details.imported),
            "duplicated": len(details.duplicated),
            "invalid": len(details.invalid),
        }
        for category, details in (("function", outcome.function), ("event", outcome.event))
    }


def summary_message(outcome: ImportOutcome) -> str:
    counts = summarize(outcome)
    message = (
        f"Imported {counts['function']['imported']} functions and {counts['event']['imported']} events! "
        f"Skipped {counts['function']['duplicated']} functions and {counts['event']['duplicated']} events."
    )
    invalid_functions = counts["function"]["invalid"]
    invalid_events = counts["event"]["invalid"]
    if invalid_functions or invalid_events:
        message += f" Rejected {invalid_functions} invalid functions and {invalid_events} invalid events."
    return message


def import_rows(outcome: ImportOutcome) -> List[ImportRow]:
    rows: List[ImportRow] = []
    pairs = (("function", outcome.function), ("event", outcome.event))
    for category, details in pairs:
        rows.extend(ImportRow(sig, hsh, category, "imported") for sig, hsh in details.imported.items())
    for category, details in pairs:
        rows.extend(ImportRow(sig, hsh, category, "duplicated") for sig, hsh in details.duplicated.items())
    for category, details in pairs:
        rows.extend(ImportRow(sig, "", category, "invalid") for sig in details.invalid)
    return rows
