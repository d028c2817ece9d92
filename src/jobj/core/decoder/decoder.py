"""
Safe Decoder - Decode model output into a typed value, repairing if needed.

Flow:
1. Normalize (trim, unwrap markdown, isolate the first bracketed region)
2. Try a direct decode into the target shape
3. Refuse to coerce non-array payloads into sequence targets
4. Repair the text once and retry the decode

Decoding is all-or-nothing: callers get a fully validated value or a
DecodeError subclass with the underlying cause chained.
"""

import logging
import re
from collections.abc import Sequence, Set
from dataclasses import dataclass, field
from typing import Annotated, Any, TypeVar, get_args, get_origin

from pydantic import TypeAdapter, ValidationError

from jobj.config import get_settings
from jobj.core.errors import (
    DecodeError,
    EmptyInputError,
    ExpectedArrayError,
    FinalDecodeError,
    JSONRepairError,
    RepairEmptyError,
    RepairFailedError,
)
from jobj.core.repair import JSONRepairer

logger = logging.getLogger(__name__)

T = TypeVar("T")

MARKDOWN_JSON_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


@dataclass
class DecodeResult:
    """Result of a non-raising decode attempt."""

    success: bool
    data: Any = None
    error: DecodeError | None = None
    repairs_applied: list[str] = field(default_factory=list)


def _first_bracketed_region(text: str) -> str | None:
    """
    Return the first balanced {...} or [...] region of text.

    Brackets inside double-quoted strings are ignored. A region that never
    closes runs to the end of the text so the repairer can balance it.
    """
    start: int | None = None
    depth = 0
    in_string = False
    escape = False

    for i, ch in enumerate(text):
        if start is None:
            if ch in "{[":
                start = i
                depth = 1
            continue

        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch in "{[":
            depth += 1
        elif ch in "}]":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]

    if start is None:
        return None
    return text[start:]


def prepare_json_candidate(raw: str) -> str:
    """
    Isolate the JSON payload in raw model output.

    Returns:
        The candidate text, or "" if no { or [ appears anywhere
    """
    text = raw.strip()
    if not text:
        return ""

    for fenced in MARKDOWN_JSON_PATTERN.findall(text):
        stripped = fenced.strip()
        if stripped.startswith(("{", "[")):
            text = stripped
            break

    if (text[0] == "{" and text[-1] == "}") or (text[0] == "[" and text[-1] == "]"):
        return text

    region = _first_bracketed_region(text)
    if region is None:
        logger.error(f"Error extracting JSON from model output: {text[:200]!r}")
        return ""
    return region


def is_json_array(data: str) -> bool:
    """Check whether the first non-whitespace character opens an array."""
    stripped = data.lstrip(" \t\n\r")
    return stripped.startswith("[")


def is_sequence_type(target: Any) -> bool:
    """Check whether target decodes from a JSON array (list, tuple, set...)."""
    if get_origin(target) is Annotated:
        target = get_args(target)[0]
    origin = get_origin(target) or target
    if not isinstance(origin, type):
        return False
    if issubclass(origin, (str, bytes, bytearray)):
        return False
    return issubclass(origin, (Sequence, Set))


class SafeDecoder:
    """Decode raw model output into a target shape with one repair retry."""

    def __init__(
        self,
        repairer: JSONRepairer | None = None,
        strip_newlines: bool | None = None,
    ):
        self.repairer = repairer or JSONRepairer()
        if strip_newlines is None:
            strip_newlines = get_settings().strip_newlines
        self.strip_newlines = strip_newlines

    def decode(self, raw: str | bytes, target: type[T]) -> T:
        """
        Decode raw into target.

        Args:
            raw: Raw model output (text or UTF-8 bytes)
            target: Any type pydantic can validate (model, dataclass, list[...], ...)

        Returns:
            A fully validated instance of target

        Raises:
            EmptyInputError: Nothing JSON-like in the input
            ExpectedArrayError: Sequence target, non-array payload
            RepairFailedError: The repairer could not produce JSON
            RepairEmptyError: The repairer produced an empty string
            FinalDecodeError: Repaired JSON did not match target
        """
        value, _ = self._decode(raw, target)
        return value

    def try_decode(self, raw: str | bytes, target: type[T]) -> DecodeResult:
        """Decode raw into target, reporting failure instead of raising."""
        try:
            value, repairs = self._decode(raw, target)
        except DecodeError as e:
            return DecodeResult(success=False, error=e)
        return DecodeResult(success=True, data=value, repairs_applied=repairs)

    def _decode(self, raw: str | bytes, target: type[T]) -> tuple[T, list[str]]:
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8", errors="replace")

        data = prepare_json_candidate(raw)
        if self.strip_newlines:
            data = data.replace("\r", "").replace("\n", "")

        if not data:
            raise EmptyInputError("empty input string")

        adapter: TypeAdapter[T] = TypeAdapter(target)
        try:
            return adapter.validate_json(data), []
        except ValidationError as e:
            direct_error = e

        if is_sequence_type(target) and not is_json_array(data):
            raise ExpectedArrayError(
                f"expected JSON array for array type: got {data[:200]}"
            ) from direct_error

        try:
            result = self.repairer.repair_with_report(data)
        except JSONRepairError as e:
            raise RepairFailedError(f"failed to repair JSON: {e}") from e

        if not result.text:
            raise RepairEmptyError("JSON repair resulted in empty string")

        try:
            return adapter.validate_json(result.text), result.repairs_applied
        except ValidationError as e:
            raise FinalDecodeError(f"failed to parse repaired JSON into target: {e}") from e


def decode_into(raw: str | bytes, target: type[T]) -> T:
    """Decode raw model output into target using the configured policy."""
    return SafeDecoder().decode(raw, target)
