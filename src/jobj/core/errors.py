"""
Error taxonomy for repair, decode and schema generation.

Every error carries a stable ``code`` so callers can branch on the kind
without matching on messages. Underlying causes are always chained
(``raise ... from exc``).
"""


class JobjError(Exception):
    """Base class for all jobj errors."""

    code = "JOBJ_ERROR"


class JSONRepairError(JobjError):
    """The repair engine found no JSON-like structure to recover."""

    code = "REPAIR_FAILED"


class DecodeError(JobjError):
    """A payload could not be decoded into the requested target shape."""

    code = "DECODE_FAILED"


class EmptyInputError(DecodeError):
    """Normalized input was empty before any decode attempt."""

    code = "EMPTY_INPUT"


class ExpectedArrayError(DecodeError):
    """Target is a sequence type but the payload is not a JSON array."""

    code = "EXPECTED_ARRAY"


class RepairFailedError(DecodeError):
    """The repair engine could not produce valid JSON."""

    code = "REPAIR_FAILED"


class RepairEmptyError(DecodeError):
    """The repair engine returned an empty string."""

    code = "REPAIR_EMPTY"


class FinalDecodeError(DecodeError):
    """Repaired JSON still did not match the target shape."""

    code = "FINAL_DECODE_FAILED"


class SchemaGenerationError(JobjError):
    """A schema could not be inferred from a model or function."""

    code = "SCHEMA_GENERATION"


class DateParseError(JobjError, ValueError):
    """A date string matched none of the known layouts."""

    code = "INVALID_DATE"
