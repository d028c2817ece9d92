"""JSON Repairer - Rewrite almost-JSON from model output into JSON."""

from jobj.core.repair.repairer import (
    JSONRepairer,
    RepairResult,
    compact_json,
    is_valid_json,
    repair_json,
)

__all__ = ["JSONRepairer", "RepairResult", "compact_json", "is_valid_json", "repair_json"]
