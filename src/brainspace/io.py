import tempfile, yaml, json, os
from typing import Union, Dict, Any, List
from pathlib import Path
from pydantic import ValidationError
from .errors import FileOperationError, SnapshotError
from .logs import get_logger
from .models import Snapshot

log = get_logger("io")

DATA_YAML = 0
DATA_JSON = 1

YAML_SUFFIXES = ('.yml', '.yaml')

def data_type_for(file_path: Union[Path, str]) -> int:
    """Pick the serialization format from the file suffix; anything not YAML is JSON."""
    return DATA_YAML if Path(file_path).suffix.lower() in YAML_SUFFIXES else DATA_JSON

def _cleanup(temp_path):
    if temp_path is not None and os.path.exists(temp_path):
        try:
            os.unlink(temp_path)
            log.debug(f"Cleaned up temporary file: {temp_path}")
        except OSError as cleanup_error:
            log.warning(f"Could not clean up temp file {temp_path}: {cleanup_error}")

def atomic_write(data_type: int, file_path: Union[Path, str], data: Union[Dict[str, Any], List[Any]]) -> bool:
    """
    Serialize and save data using atomic updates.
    """
    file_path = Path(file_path)
    temp_path = None

    try:
        # Temporary file in the same directory as target for atomicity
        with tempfile.NamedTemporaryFile(mode='w', encoding='utf-8', dir=file_path.parent, prefix=f".{file_path.name}.", suffix='.tmp', delete=False) as temp_file:
            temp_path = temp_file.name
            if data_type == DATA_YAML:
                yaml.safe_dump(data, temp_file, default_flow_style=False, sort_keys=False, indent=2, allow_unicode=True)
            elif data_type == DATA_JSON:
                json.dump(data, temp_file, indent=2, ensure_ascii=False)
            else:
                raise SnapshotError(f"Unsupported data format: {data_type}")
            temp_file.flush()
            os.fsync(temp_file.fileno())

        # Atomic replace - this either completely succeeds or completely fails
        os.replace(temp_path, file_path)
        log.debug(f"Successfully saved file: {file_path}")
        return True

    except (yaml.YAMLError, TypeError) as e:
        _cleanup(temp_path)
        error_msg = f"Data serialization failed for {file_path}: {e}"
        log.error(error_msg)
        raise SnapshotError(error_msg) from e

    except OSError as e:
        _cleanup(temp_path)
        error_msg = f"I/O error saving file {file_path}: {e}"
        log.error(error_msg)
        raise FileOperationError(error_msg) from e

    except SnapshotError:
        _cleanup(temp_path)
        raise

def load_data(file_path: Union[Path, str]) -> Dict[str, Any]:
    """
    Load and parse a YAML or JSON file.

    Args:
        file_path: Path to the file

    Returns:
        Parsed data as dict

    Raises:
        FileOperationError: The file is missing or unreadable.
        SnapshotError: The file is not valid YAML/JSON or not a mapping.
    """
    file_path = Path(file_path)
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            if data_type_for(file_path) == DATA_YAML:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)

    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise SnapshotError(f"Syntax error in {file_path}: {e}") from e
    except OSError as e:
        raise FileOperationError(f"Failed to read file {file_path}: {e}") from e

    if data is None:
        return {}
    # Basic sanity check for data corruption
    if not isinstance(data, dict):
        raise SnapshotError(f"File {file_path} contains invalid data structure")
    return data

def load_snapshot(file_path: Union[Path, str]) -> Snapshot:
    """Load a snapshot file exported from the store."""
    data = load_data(file_path)
    try:
        snapshot = Snapshot.model_validate(data)
    except ValidationError as e:
        raise SnapshotError(f"Invalid snapshot {file_path}: {e}") from e

    log.info(f"Loaded snapshot {file_path}: {len(snapshot.nodes)} nodes, {len(snapshot.edges)} edges")
    return snapshot
