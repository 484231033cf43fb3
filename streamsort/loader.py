"""
Streaming history loader

Finds the batch files of a Spotify extended streaming history export and
parses them into Stream records. Two naming conventions exist in the wild:

- sequence: ``endsong_0.json``, ``endsong_1.json``, ... (older exports).
  Files are probed from index 0 and discovery stops at the first gap.
- glob: ``Streaming_History_Audio_2019-2021_0.json`` and friends (newer
  exports). Every file matching the prefix is taken in filename order.

Order across files does not matter here; the merger sorts the result.
"""

import logging
from pathlib import Path
from typing import List, Optional

from streamsort.exceptions import DiscoveryError, ParseError
from streamsort.io_utils import read_json_batch
from streamsort.merger import merge_batches
from streamsort.models import Stream

logger = logging.getLogger(__name__)

MODE_SEQUENCE = 'sequence'
MODE_GLOB = 'glob'
DISCOVERY_MODES = (MODE_SEQUENCE, MODE_GLOB)

DEFAULT_PREFIXES = {
    MODE_SEQUENCE: 'endsong',
    MODE_GLOB: 'Streaming_History_Audio_',
}


def discover_batch_files(input_dir: Path, mode: str = MODE_SEQUENCE, prefix: Optional[str] = None) -> List[Path]:
    """Return the batch files in ``input_dir`` for the given naming convention.

    Returns an empty list when nothing matches; the caller decides whether
    that is fatal.
    """
    if mode not in DISCOVERY_MODES:
        raise ValueError(f"Unknown discovery mode: {mode!r} (expected one of {', '.join(DISCOVERY_MODES)})")
    directory = Path(input_dir)
    prefix = prefix or DEFAULT_PREFIXES[mode]

    if mode == MODE_GLOB:
        files = sorted(p for p in directory.glob(f"{prefix}*.json") if p.is_file())
        logger.debug(f"Glob {prefix}*.json in {directory} matched {len(files)} files")
        return files

    files = []
    index = 0
    while True:
        candidate = directory / f"{prefix}_{index}.json"
        if not candidate.is_file():
            break
        files.append(candidate)
        index += 1
    logger.debug(f"Found {len(files)} sequential {prefix}_N.json files in {directory}")
    return files


def load_batch_file(path: Path) -> List[Stream]:
    """Parse one batch file. Any malformed record makes the whole file fail."""
    rows = read_json_batch(path)
    streams = []
    for index, row in enumerate(rows):
        try:
            streams.append(Stream.from_dict(row))
        except (TypeError, ValueError) as e:
            raise ParseError(f"{path}: record {index}: {e}") from e
    return streams


def load_streams(
    input_dir: Path,
    mode: str = MODE_SEQUENCE,
    prefix: Optional[str] = None,
    allow_empty: bool = False,
) -> List[Stream]:
    """Discover and parse every batch file, concatenated in discovery order.

    Raises DiscoveryError when no file matches, unless ``allow_empty`` is set.
    """
    files = discover_batch_files(input_dir, mode=mode, prefix=prefix)
    if not files:
        expected = prefix or DEFAULT_PREFIXES[mode]
        pattern = f"{expected}*.json" if mode == MODE_GLOB else f"{expected}_0.json"
        if allow_empty:
            logger.warning(f"No {pattern} file found in {input_dir}")
            return []
        raise DiscoveryError(f"No {pattern} file found in {input_dir}")

    batches = []
    for path in files:
        streams = load_batch_file(path)
        batches.append(streams)
        logger.info(f"{path.name} done! ({len(streams)} streams)")
    return merge_batches(batches)
