"""
JSON Repairer - Rewrite almost-JSON from LLM output into JSON.

The repairer never parses the input grammatically. It runs a fixed,
ordered sequence of scoped rewrites, each addressing one defect class,
and finishes with a validity check.

Flow:
1. Trim whitespace and markdown fences
2. Short-circuit degenerate inputs (lone quote, lone closer, blank)
3. Anchor to the first { or [
4. Return valid JSON compacted
5. Expand minimal skeletons ([ -> [], { -> {})
6. Drop "..." truncation markers from arrays
7. Close arrays that end in a dangling comma
8. Join space-separated array elements
9. Normalize quotes (single -> double)
10. Quote bare keys
11. Quote bare values, lowercase true/false/null
12. Remove trailing commas
13. Balance brackets
14. Remove leftover "..." markers
15. Insert missing commas between array elements
16. Return if valid
17. Rebuild unbalanced objects from the "key": value pairs still present
18. Fall back to {} / [] (policy), otherwise fail

Local, character-level passes (9-12) run before structural ones (13-15)
because bracket counting and comma insertion assume well-formed tokens.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable

from jobj.config import get_settings
from jobj.core.errors import JSONRepairError

logger = logging.getLogger(__name__)

# A double-quoted string literal, or an unterminated one running to the end
STRING_LITERAL = r'(?P<str>"(?:[^"\\]|\\.)*(?:"|\Z))'
# Either quote style, for passes that run before quote normalization
QUOTED_LITERAL = r"""(?P<str>"(?:[^"\\]|\\.)*(?:"|\Z)|'(?:[^'\\]|\\.)*(?:'|\Z))"""


def _skip_strings(pattern: str, literal: str = STRING_LITERAL) -> re.Pattern[str]:
    """Compile a pattern that matches string literals first so they can be skipped."""
    return re.compile(literal + "|" + pattern, re.DOTALL)


def _sub_outside_strings(
    pattern: re.Pattern[str], repl: Callable[[re.Match[str]], str], text: str
) -> str:
    """Apply repl to every match that is not inside a string literal."""

    def replace(match: re.Match[str]) -> str:
        if match.group("str") is not None:
            return match.group("str")
        return repl(match)

    return pattern.sub(replace, text)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def is_valid_json(text: str) -> bool:
    """Strict JSON validity check (NaN and Infinity are rejected)."""
    try:
        json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        return False
    return True


def compact_json(text: str) -> str:
    """Remove insignificant whitespace from valid JSON, keeping tokens verbatim."""
    out: list[str] = []
    in_string = False
    escape = False
    for ch in text:
        if in_string:
            out.append(ch)
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue
        if ch in " \t\n\r":
            continue
        if ch == '"':
            in_string = True
        out.append(ch)
    return "".join(out)


@dataclass
class RepairResult:
    """Result of a repair run."""

    text: str
    repairs_applied: list[str] = field(default_factory=list)


class JSONRepairer:
    """Best-effort repair of malformed JSON text."""

    # Inputs with no recoverable structure; all map to the empty JSON string
    DEGENERATE_INPUTS = frozenset({"", '"', "]", "}"})
    EMPTY_JSON_STRING = '""'

    SKELETONS = {
        "[": "[]",
        "{": "{}",
        "[{]": "[{}]",
        '{"': "{}",
        '["': "[]",
    }

    OPENING_BRACKET = re.compile(r"[{\[]")
    # Runs before quote normalization, so single-quoted strings are skipped too
    ARRAY_ELLIPSIS_PATTERN = _skip_strings(r",?\s*\.\.\.", literal=QUOTED_LITERAL)

    # ["a" "b" 1] - quoted strings or numbers separated only by whitespace
    SPACED_TOKEN = r"""(?:"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*'|-?\d+(?:\.\d+)?)"""
    SPACED_ARRAY_PATTERN = re.compile(
        rf"\[\s*({SPACED_TOKEN}(?:\s+{SPACED_TOKEN})+)\s*\]?\Z"
    )
    SPACED_TOKEN_PATTERN = re.compile(SPACED_TOKEN)

    UNQUOTED_KEY_PATTERN = _skip_strings(
        r"(?P<lead>[{,]\s*)(?P<key>[A-Za-z0-9_]+)(?P<colon>\s*:)"
    )
    LITERAL_VALUE_PATTERN = _skip_strings(
        r"(?P<lead>:\s*)(?P<word>(?i:true|false|null))(?=\s*(?:[,}\]]|\Z))"
    )
    UNQUOTED_VALUE_PATTERN = _skip_strings(
        r"(?P<lead>:\s*)(?P<word>[A-Za-z][A-Za-z0-9_]*(?:[ \t]+[A-Za-z0-9_]+)*)"
        r"(?=\s*(?:[,}]|\Z))"
    )
    TRAILING_COMMA_PATTERN = _skip_strings(r",\s*(?P<close>[}\]])")
    ELLIPSIS_PATTERN = _skip_strings(r",?\s*\.\.\.")

    KEY_VALUE_PATTERN = re.compile(
        r'"((?:[^"\\]|\\.)+)"\s*:\s*'
        r'("(?:[^"\\]|\\.)*"|-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?|true|false|null)'
    )

    def __init__(
        self,
        empty_structure_fallback: bool | None = None,
        degraded_extraction: bool | None = None,
    ):
        settings = get_settings()
        self.empty_structure_fallback = (
            settings.empty_structure_fallback
            if empty_structure_fallback is None
            else empty_structure_fallback
        )
        self.degraded_extraction = (
            settings.degraded_extraction
            if degraded_extraction is None
            else degraded_extraction
        )

    def repair(self, text: str) -> str:
        """
        Repair text into valid JSON.

        Args:
            text: Almost-JSON text, typically raw model output

        Returns:
            Compact, valid JSON text ("" for empty input)

        Raises:
            JSONRepairError: If the text holds no JSON-like structure at all
        """
        return self.repair_with_report(text).text

    def repair_with_report(self, text: str) -> RepairResult:
        """Repair text and report which passes changed it."""
        repairs: list[str] = []

        if text == "":
            return RepairResult(text="")

        # Step 1: Pre-trim
        src = self._strip_fences(text)
        if src != text.strip():
            repairs.append("stripped_code_fence")

        # Step 2: Degenerate inputs
        if src in self.DEGENERATE_INPUTS:
            repairs.append("degenerate_input")
            return RepairResult(text=self.EMPTY_JSON_STRING, repairs_applied=repairs)

        # Step 3: Anchor to the first bracket
        if not src.startswith(("{", "[", '"')):
            match = self.OPENING_BRACKET.search(src)
            if match is None:
                if is_valid_json(src):
                    return RepairResult(text=compact_json(src), repairs_applied=repairs)
                logger.warning(f"No JSON structure found in input: {src[:80]!r}")
                raise JSONRepairError("unable to repair JSON: no object or array found")
            src = src[match.start() :]
            repairs.append("anchored_to_bracket")

        # Step 4: Fast path
        if is_valid_json(src):
            return RepairResult(text=compact_json(src), repairs_applied=repairs)

        # Step 5: Minimal skeletons
        skeleton = self.SKELETONS.get(src)
        if skeleton is not None:
            repairs.append("expanded_skeleton")
            return RepairResult(text=skeleton, repairs_applied=repairs)

        # Steps 6-8: Top-level array special cases
        if src.startswith("[") and "..." in src:
            cleaned = _sub_outside_strings(self.ARRAY_ELLIPSIS_PATTERN, lambda m: "", src)
            if cleaned != src:
                repairs.append("removed_ellipsis")
                src = cleaned
                candidate = self._keep_leading_elements(src)
                if candidate is not None:
                    return RepairResult(text=candidate, repairs_applied=repairs)

        if src.startswith("[") and src.rstrip().endswith(","):
            candidate = self._close_dangling_array(src)
            if candidate is not None:
                repairs.append("closed_dangling_array")
                return RepairResult(text=candidate, repairs_applied=repairs)

        if src.startswith(('["', "['")):
            candidate = self._join_spaced_elements(src)
            if candidate is not None:
                repairs.append("joined_spaced_elements")
                return RepairResult(text=candidate, repairs_applied=repairs)

        # Steps 9-12: Token-level rewrites
        repaired = src
        for name, rewrite in (
            ("normalized_quotes", self._normalize_quotes),
            ("quoted_keys", self._quote_keys),
            ("quoted_values", self._quote_values),
            ("removed_trailing_commas", self._remove_trailing_commas),
        ):
            rewritten = rewrite(repaired)
            if rewritten != repaired:
                repairs.append(name)
                repaired = rewritten

        # Step 13: Balance brackets
        balanced = self._balance_brackets(repaired)
        was_unbalanced = balanced != repaired
        if was_unbalanced:
            repairs.append("balanced_brackets")
            repaired = balanced

        # Step 14: Ellipsis cleanup
        if "..." in repaired:
            cleaned = _sub_outside_strings(self.ELLIPSIS_PATTERN, lambda m: "", repaired)
            if cleaned != repaired:
                repairs.append("removed_ellipsis")
                repaired = cleaned

        # Step 15: Missing commas between array elements
        if repaired.startswith("["):
            rewritten = self._insert_array_commas(repaired)
            if rewritten != repaired:
                repairs.append("inserted_array_commas")
                repaired = rewritten

        # Step 16: Recheck
        if is_valid_json(repaired):
            logger.debug(f"Repaired JSON with: {repairs}")
            return RepairResult(text=compact_json(repaired), repairs_applied=repairs)

        # Step 17: Degraded key-value extraction
        if self.degraded_extraction and was_unbalanced and repaired.startswith("{"):
            extracted = self._extract_key_values(repaired)
            if extracted is not None and is_valid_json(extracted):
                repairs.append("extracted_key_values")
                logger.warning(
                    f"Recovered object from key/value pairs only, nested data may be lost: {repairs}"
                )
                return RepairResult(text=compact_json(extracted), repairs_applied=repairs)

        # Step 18: Final fallback
        return self._fallback(repaired, repairs)

    def _fallback(self, repaired: str, repairs: list[str]) -> RepairResult:
        """Availability over fidelity: return an empty structure if allowed."""
        if self.empty_structure_fallback and repaired.startswith(("{", "[")):
            empty = "{}" if repaired.startswith("{") else "[]"
            repairs.append("empty_structure_fallback")
            logger.warning(f"JSON repair did not converge, returning {empty}: {repairs}")
            return RepairResult(text=empty, repairs_applied=repairs)

        logger.warning(f"JSON repair failed after: {repairs}")
        raise JSONRepairError(f"unable to repair JSON after {repairs}")

    def _strip_fences(self, text: str) -> str:
        src = text.strip()
        if src.startswith("```json"):
            src = src[len("```json") :]
        elif src.startswith("```"):
            src = src[len("```") :]
        if src.endswith("```"):
            src = src[: -len("```")]
        return src.strip()

    def _keep_leading_elements(self, src: str) -> str | None:
        """Rebuild a truncated array from its well-formed leading elements."""
        if is_valid_json(src):
            return compact_json(src)

        elements = [elem.strip() for elem in self._split_array_elements(src)]
        elements = [elem for elem in elements if elem]
        if not elements:
            return None
        candidate = "[" + ",".join(elements) + "]"
        return compact_json(candidate) if is_valid_json(candidate) else None

    def _split_array_elements(self, src: str) -> list[str]:
        """
        Split a top-level array body on its own commas.

        Commas inside strings (either quote style) or nested brackets are
        content. Scanning stops at the array's closing bracket, or runs to
        the end of truncated text.
        """
        elements: list[str] = []
        current: list[str] = []
        quote: str | None = None
        escape = False
        depth = 0

        for ch in src[1:]:
            if quote is not None:
                current.append(ch)
                if escape:
                    escape = False
                elif ch == "\\":
                    escape = True
                elif ch == quote:
                    quote = None
                continue

            if ch in "\"'":
                quote = ch
            elif ch in "{[":
                depth += 1
            elif ch in "}]":
                if depth == 0:
                    break
                depth -= 1
            elif ch == "," and depth == 0:
                elements.append("".join(current))
                current = []
                continue
            current.append(ch)

        elements.append("".join(current))
        return elements

    def _close_dangling_array(self, src: str) -> str | None:
        candidate = src.rstrip()[:-1] + "]"
        return compact_json(candidate) if is_valid_json(candidate) else None

    def _join_spaced_elements(self, src: str) -> str | None:
        match = self.SPACED_ARRAY_PATTERN.match(src)
        if not match:
            return None
        values: list[Any] = []
        for token in self.SPACED_TOKEN_PATTERN.findall(match.group(1)):
            if token[0] == "'":
                token = self._normalize_quotes(token)
            try:
                values.append(json.loads(token))
            except ValueError:
                return None
        return json.dumps(values, ensure_ascii=False, separators=(",", ":"))

    def _normalize_quotes(self, text: str) -> str:
        """
        Convert single-quoted strings to double-quoted ones.

        Only structural quotes are converted. Inside a single-quoted string
        a double quote is content and gets escaped; an escaped single quote
        becomes a plain apostrophe.
        """
        out: list[str] = []
        quote: str | None = None
        escape = False

        for ch in text:
            if escape:
                if ch == "'":
                    out[-1] = "'"
                else:
                    out.append(ch)
                escape = False
                continue

            if ch == "\\":
                out.append(ch)
                escape = True
            elif quote is None:
                if ch in "\"'":
                    quote = ch
                    out.append('"')
                else:
                    out.append(ch)
            elif ch == quote:
                quote = None
                out.append('"')
            elif ch == '"':
                out.append('\\"')
            else:
                out.append(ch)

        return "".join(out)

    def _quote_keys(self, text: str) -> str:
        return _sub_outside_strings(
            self.UNQUOTED_KEY_PATTERN,
            lambda m: f'{m.group("lead")}"{m.group("key")}"{m.group("colon")}',
            text,
        )

    def _quote_values(self, text: str) -> str:
        text = _sub_outside_strings(
            self.LITERAL_VALUE_PATTERN,
            lambda m: m.group("lead") + m.group("word").lower(),
            text,
        )

        def quote(match: re.Match[str]) -> str:
            word = match.group("word")
            if word in ("true", "false", "null"):
                return match.group(0)
            return match.group("lead") + json.dumps(word, ensure_ascii=False)

        return _sub_outside_strings(self.UNQUOTED_VALUE_PATTERN, quote, text)

    def _remove_trailing_commas(self, text: str) -> str:
        return _sub_outside_strings(
            self.TRAILING_COMMA_PATTERN, lambda m: m.group("close"), text
        )

    def _balance_brackets(self, text: str) -> str:
        """Close an unterminated string, then every unclosed bracket in reverse order."""
        stack: list[str] = []
        in_string = False
        escape = False

        for ch in text:
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
                stack.append(ch)
            elif ch == "}" and stack and stack[-1] == "{":
                stack.pop()
            elif ch == "]" and stack and stack[-1] == "[":
                stack.pop()

        if in_string:
            if escape:
                text = text[:-1]
            text += '"'

        return text + "".join("}" if ch == "{" else "]" for ch in reversed(stack))

    def _insert_array_commas(self, text: str) -> str:
        """Insert a comma between values separated only by whitespace."""
        out: list[str] = []
        in_string = False
        escape = False
        after_value = False
        gap_at: int | None = None

        for ch in text:
            if in_string:
                out.append(ch)
                if escape:
                    escape = False
                elif ch == "\\":
                    escape = True
                elif ch == '"':
                    in_string = False
                    after_value = True
                continue

            if ch.isspace():
                if after_value and gap_at is None:
                    gap_at = len(out)
                out.append(ch)
                continue

            starts_value = ch in '"-{[' or ch.isalnum()
            if gap_at is not None and starts_value:
                out.insert(gap_at, ",")
            gap_at = None

            if ch == '"':
                in_string = True
                after_value = False
            else:
                after_value = ch in "}]." or ch.isalnum()
            out.append(ch)

        return "".join(out)

    def _extract_key_values(self, text: str) -> str | None:
        """Reassemble an object from every "key": scalar pair found. Lossy."""
        pairs = self.KEY_VALUE_PATTERN.findall(text)
        if not pairs:
            return None
        return "{" + ",".join(f'"{key}":{value}' for key, value in pairs) + "}"


def repair_json(text: str) -> str:
    """Repair text into valid JSON using the configured policy."""
    return JSONRepairer().repair(text)
