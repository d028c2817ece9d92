"""jobj Core - Error taxonomy, JSON repair and safe decoding."""

from jobj.core.decoder import DecodeResult, SafeDecoder, decode_into
from jobj.core.errors import (
    DateParseError,
    DecodeError,
    EmptyInputError,
    ExpectedArrayError,
    FinalDecodeError,
    JobjError,
    JSONRepairError,
    RepairEmptyError,
    RepairFailedError,
    SchemaGenerationError,
)
from jobj.core.repair import JSONRepairer, RepairResult, repair_json

__all__ = [
    "DateParseError",
    "DecodeError",
    "DecodeResult",
    "EmptyInputError",
    "ExpectedArrayError",
    "FinalDecodeError",
    "JSONRepairError",
    "JSONRepairer",
    "JobjError",
    "RepairEmptyError",
    "RepairFailedError",
    "RepairResult",
    "SafeDecoder",
    "SchemaGenerationError",
    "decode_into",
    "repair_json",
]
