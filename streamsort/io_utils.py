"""General I/O utilities for JSON batch files, the sorted output and backups.

This module centralizes filesystem I/O helpers so the loader and the
pipeline can share them without pulling in each other's logic.
"""
from pathlib import Path
from datetime import datetime
import json
import logging
import os
import stat
import tempfile
from typing import Any, Dict, List, Sequence

from streamsort.exceptions import OutputError, ParseError
from streamsort.models import Stream

logger = logging.getLogger(__name__)

JSON_INDENT = 4


def create_backup(path: Path) -> Path:
    """Create a timestamped backup of an existing file and return the backup path."""
    p = Path(path)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_name = f"{p.stem}_backup_{timestamp}{p.suffix}"
    backup_path = p.parent / backup_name
    backup_path.write_text(p.read_text(encoding='utf-8'), encoding='utf-8')
    logger.info(f"Created backup: {backup_path}")
    return backup_path


def read_json_batch(path: Path) -> List[Dict[str, Any]]:
    """Read a batch file holding a JSON array of record objects.

    Raises ParseError if the file cannot be read, is not valid JSON, or is not
    an array of objects.
    """
    p = Path(path)
    try:
        with p.open('r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise ParseError(f"Error when opening file {p}: {e}") from e
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON in {p}: {e}") from e
    except UnicodeDecodeError as e:
        raise ParseError(f"{p} is not valid UTF-8: {e}") from e

    if not isinstance(data, list):
        raise ParseError(f"{p} must contain a JSON array, got {type(data).__name__}")
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise ParseError(f"{p}: record {index} is {type(item).__name__}, expected an object")
    return data


def _output_mode(path: Path) -> int:
    """Permission bits for the output: the existing file's, else the umask default."""
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_sorted_streams(streams: Sequence[Stream], path: Path, make_backup: bool = False) -> Path:
    """Write streams to ``path`` as an indented JSON array.

    The file is written next to its destination and moved into place, so a
    failed write leaves any previous artifact untouched. If make_backup is
    True and the destination exists, a timestamped copy is made first.
    """
    p = Path(path)
    payload = json.dumps([s.to_dict() for s in streams], indent=JSON_INDENT, ensure_ascii=False)

    tmp_name = None
    try:
        if make_backup and p.exists():
            create_backup(p)
        with tempfile.NamedTemporaryFile(
            'w', encoding='utf-8', dir=p.parent, prefix=f".{p.name}.", suffix='.tmp', delete=False
        ) as f:
            tmp_name = f.name
            f.write(payload)
            f.write('\n')
        os.chmod(tmp_name, _output_mode(p))
        os.replace(tmp_name, p)
    except OSError as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise OutputError(f"Error when writing {p}: {e}") from e

    logger.info(f"{len(streams)} streams sorted!")
    return p


def read_sorted_streams(path: Path) -> List[Stream]:
    """Load a previously written output file back into Stream objects."""
    rows = read_json_batch(path)
    try:
        return [Stream.from_dict(row, keep_artwork=True) for row in rows]
    except ValueError as e:
        raise ParseError(f"{path}: {e}") from e
