"""
JSON-schema lint for snapshot files.

Loading is lenient: malformed patterns and invalid nodes are made inert so
the rest of the snapshot still works. This module is the strict side - it
reports every deviation from the canonical export format so the data can be
fixed at the source.
"""
import json
from pathlib import Path
from typing import Any, Dict, List, Union

from jsonschema import Draft202012Validator, SchemaError

from .io import load_data
from .logs import get_logger
from .models import Snapshot

log = get_logger("validate")

SCHEMA_DIALECT = "https://json-schema.org/draft/2020-12/schema"

def snapshot_schema() -> Dict[str, Any]:
    """JSON schema of the snapshot format, generated from the pydantic models."""
    schema = Snapshot.model_json_schema(by_alias=True)
    schema["$schema"] = SCHEMA_DIALECT
    return schema

def _location(path) -> str:
    return "/".join(str(part) for part in path) or "<root>"

def _json_types(data: Any) -> Any:
    # YAML loads bare dates and timestamps as date/datetime objects
    return json.loads(json.dumps(data, default=lambda o: o.isoformat() if hasattr(o, 'isoformat') else str(o)))

def validate_snapshot_data(data: Any) -> List[str]:
    """
    Check parsed snapshot data against the schema.

    Returns:
        One message per violation, ordered by location. Empty when valid.
    """
    schema = snapshot_schema()
    try:
        Draft202012Validator.check_schema(schema)
    except SchemaError as e:
        log.error(f"Generated snapshot schema is invalid: {e.message}")
        raise

    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(_json_types(data)), key=lambda e: [str(p) for p in e.absolute_path])
    return [f"{_location(e.absolute_path)}: {e.message}" for e in errors]

def validate_snapshot_file(file_path: Union[Path, str]) -> List[str]:
    """
    Lint a snapshot file.

    Raises:
        FileOperationError / SnapshotError: The file cannot be read or parsed at all.
    """
    data = load_data(file_path)
    problems = validate_snapshot_data(data)

    if problems:
        log.warning(f"Snapshot {file_path} FAILED validation with {len(problems)} problem(s)")
        for problem in problems:
            log.info(problem)
    else:
        log.info(f"Snapshot {file_path} is VALID")
    return problems
