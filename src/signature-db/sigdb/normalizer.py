"""
Turn pasted signatures or an ABI JSON document into an import request.

Two input shapes are accepted:
- a JSON ABI array (objects as emitted by solc, or human-readable fragment strings);
- freeform text with one signature per line, optionally prefixed by
  ``function``, ``error`` or ``event``.

Invalid ABI fragments are skipped with a warning and normalization never
raises; the upstream import endpoint is responsible for validating each
signature.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from eth_utils import abi_to_signature, keccak

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_ARRAY_SUFFIX_RE = re.compile(r"((?:\[\d*\])*)$")
_TYPE_NAME_RE = re.compile(r"^[a-z][a-z0-9]*$")
_HUMAN_FRAGMENT_RE = re.compile(r"^(function|event|error)\s+([A-Za-z_$][A-Za-z0-9_$]*)\s*\((.*)\)")
_PARAM_MODIFIERS = {"indexed", "memory", "calldata", "storage", "payable"}

FUNCTION_PREFIX = "function "
ERROR_PREFIX = "error "
EVENT_PREFIX = "event "


@dataclass
class SignatureImportRequest:
    function: List[str] = field(default_factory=list)
    event: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.function and not self.event

    def to_dict(self) -> Dict[str, List[str]]:
        return {"function": list(self.function), "event": list(self.event)}


def build_import_request(raw_text: str) -> SignatureImportRequest:
    text = (raw_text or "").strip()
    if text.startswith("[") and text.endswith("]"):
        try:
            abi = json.loads(text)
        except ValueError as exc:
            logger.debug("Input is not JSON, parsing line by line: %s", exc)
        else:
            if isinstance(abi, list):
                return _request_from_abi(abi)
    return _request_from_lines(text)


def _request_from_abi(abi: List[Any]) -> SignatureImportRequest:
    buckets: Dict[str, List[str]] = {"function": [], "error": [], "event": []}

    for fragment in abi:
        try:
            if isinstance(fragment, str):
                kind, signature = _human_fragment_signature(fragment)
            elif isinstance(fragment, dict):
                kind, signature = _json_fragment_signature(fragment)
            else:
                raise ValueError("fragment must be an object or a string")
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Skipping invalid ABI fragment %r: %s", fragment, exc)
            continue
        if kind in buckets:
            buckets[kind].append(signature)

    return SignatureImportRequest(
        function=_sorted_unique(buckets["function"]) + _sorted_unique(buckets["error"]),
        event=_sorted_unique(buckets["event"]),
    )


def _sorted_unique(signatures: List[str]) -> List[str]:
    # alphabetical, case-insensitive first, duplicate signatures collapsed
    return sorted(set(signatures), key=lambda signature: (signature.lower(), signature))


def _json_fragment_signature(fragment: Dict[str, Any]) -> Tuple[str, str]:
    kind = fragment.get("type", "function")
    if not isinstance(kind, str):
        raise ValueError(f"invalid fragment type {kind!r}")
    if kind in {"constructor", "fallback", "receive"}:
        return kind, ""
    if kind not in {"function", "event", "error"}:
        raise ValueError(f"unsupported fragment type '{kind}'")

    name = fragment.get("name")
    if not isinstance(name, str) or not _IDENTIFIER_RE.match(name):
        raise ValueError(f"invalid {kind} name {name!r}")

    inputs = fragment.get("inputs") or []
    if not isinstance(inputs, list):
        raise ValueError(f"invalid inputs for {kind} '{name}'")

    element = dict(fragment, type=kind, inputs=[_widen_param(param) for param in inputs])
    return kind, abi_to_signature(element)


def _widen_param(param: Any) -> Dict[str, Any]:
    """Copy of an ABI parameter with ``uint``/``int`` widened to their 256-bit forms."""
    if not isinstance(param, dict):
        raise ValueError("parameter must be an object")

    typ = param.get("type")
    if not isinstance(typ, str) or not typ:
        raise ValueError("parameter is missing its type")

    widened = dict(param, type=_widen_type(typ))
    if typ.startswith("tuple"):
        components = param.get("components")
        if not isinstance(components, list):
            raise ValueError("tuple parameter is missing its components")
        widened["components"] = [_widen_param(component) for component in components]
    return widened


def _widen_type(typ: str) -> str:
    suffix = _ARRAY_SUFFIX_RE.search(typ).group(1)
    base = typ[: len(typ) - len(suffix)]
    if base == "uint":
        return "uint256" + suffix
    if base == "int":
        return "int256" + suffix
    if not _TYPE_NAME_RE.match(base):
        raise ValueError(f"invalid type '{typ}'")
    return typ


def _human_fragment_signature(fragment: str) -> Tuple[str, str]:
    text = fragment.strip()
    if text.startswith(("constructor", "fallback", "receive")):
        return "constructor", ""

    match = _HUMAN_FRAGMENT_RE.match(text)
    if not match:
        raise ValueError(f"Unsupported human-readable fragment '{fragment}'.")

    kind, name, params = match.groups()
    if kind == "function":
        # drop the "returns (...)" clause and modifiers following the parameter list
        params = _leading_group(f"({params})")
    return kind, f"{name}({_canonical_human_params(params)})"


def _leading_group(text: str) -> str:
    depth = 0
    for idx, char in enumerate(text):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return text[1:idx]
    raise ValueError("Unbalanced parentheses in fragment.")


def _split_top_level(params: str) -> List[str]:
    parts: List[str] = []
    depth = 0
    current = ""
    for char in params:
        if char == "," and depth == 0:
            parts.append(current.strip())
            current = ""
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                raise ValueError("Unbalanced parentheses in fragment.")
        current += char
    if depth != 0:
        raise ValueError("Unbalanced parentheses in fragment.")
    if current.strip() or parts:
        parts.append(current.strip())
    return parts


def _canonical_human_params(params: str) -> str:
    types: List[str] = []
    for part in _split_top_level(params):
        if not part:
            raise ValueError("Empty parameter in fragment.")
        types.append(_canonical_human_type(part))
    return ",".join(types)


def _canonical_human_type(param: str) -> str:
    text = param.strip()
    if text.startswith("tuple("):
        text = text[len("tuple"):]

    if text.startswith("("):
        inner = _leading_group(text)
        rest = text[len(inner) + 2:].strip()
        array = rest.split()[0] if rest.startswith("[") else ""
        if array and not _ARRAY_SUFFIX_RE.fullmatch(array):
            raise ValueError(f"Invalid array suffix in '{param}'.")
        return f"({_canonical_human_params(inner)}){array}"

    tokens = [token for token in text.split() if token not in _PARAM_MODIFIERS]
    if not tokens:
        raise ValueError(f"Missing type in parameter '{param}'.")
    return _widen_type(tokens[0])


def _request_from_lines(text: str) -> SignatureImportRequest:
    request = SignatureImportRequest()
    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line or line.startswith("//"):
            continue

        if line.startswith(FUNCTION_PREFIX):
            request.function.append(line[len(FUNCTION_PREFIX):])
        elif line.startswith(ERROR_PREFIX):
            request.function.append(line[len(ERROR_PREFIX):])
        elif line.startswith(EVENT_PREFIX):
            request.event.append(line[len(EVENT_PREFIX):])
        elif "(" in line and ")" in line:
            if "event" in line.lower():
                request.event.append(line)
            else:
                request.function.append(line)
    return request


def selector(signature: str) -> str:
    """4-byte selector of a function or error signature, 0x-prefixed."""
    return "0x" + keccak(text=signature)[:4].hex()


def topic(signature: str) -> str:
    """32-byte topic hash of an event signature, 0x-prefixed."""
    return "0x" + keccak(text=signature).hex()
