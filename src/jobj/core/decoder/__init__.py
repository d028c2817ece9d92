"""Safe Decoder - Decode model output into typed values."""

from jobj.core.decoder.decoder import (
    DecodeResult,
    SafeDecoder,
    decode_into,
    is_json_array,
    is_sequence_type,
    prepare_json_candidate,
)

__all__ = [
    "DecodeResult",
    "SafeDecoder",
    "decode_into",
    "is_json_array",
    "is_sequence_type",
    "prepare_json_candidate",
]
