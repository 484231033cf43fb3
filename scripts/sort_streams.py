#!/usr/bin/env python3
"""
sort_streams.py - Sort a Spotify streaming history export and add artwork

Reads every batch file of an extended streaming history export, sorts all
streams by timestamp, looks up the album artwork of each Spotify track and
writes a single sorted JSON file.

WORKFLOW:
1. Discover the batch files (endsong_0.json, endsong_1.json, ... or
   Streaming_History_Audio_*.json with --mode glob)
2. Sort all streams by their 'ts' timestamp
3. Fetch artwork for each distinct track (once per track)
4. Write sorted_streams.json with an 'artwork_url' field on every stream

REQUIREMENTS:
- A Spotify app's client id/secret in config.py, .env or the environment
  (SPOTIFY_ID, SPOTIFY_SECRET)

Exit status is 0 on success and non-zero on any fatal error; no partial
output is written.
"""

import argparse
import logging
import sys
from pathlib import Path

# Allow running from a checkout without installing the package
repo_root = Path(__file__).resolve().parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from streamsort.config_manager import Config
from streamsort.exceptions import StreamSorterError
from streamsort.loader import DISCOVERY_MODES
from streamsort.pipeline import StreamSorter

LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    epilog = """
EXAMPLES:
  py -3 scripts/sort_streams.py --input-dir ~/Downloads/MyData
  py -3 scripts/sort_streams.py --mode glob --output history.json
"""

    parser = argparse.ArgumentParser(
        description="Sort Spotify streaming history and add album artwork URLs",
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument('--input-dir', help='Directory holding the export batch files (default: config INPUT_DIR or .)')
    parser.add_argument('--mode', choices=DISCOVERY_MODES, help='Batch file naming convention: sequence (endsong_N.json) or glob (prefix*.json)')
    parser.add_argument('--prefix', help='Batch file name prefix (default: endsong for sequence, Streaming_History_Audio_ for glob)')
    parser.add_argument('-o', '--output', help='Output JSON file (default: sorted_streams.json)')
    parser.add_argument('--allow-empty', action='store_true', help='Exit successfully when no batch file is found')
    parser.add_argument('--backup', action='store_true', help='Back up an existing output file before replacing it')
    parser.add_argument('--no-progress', action='store_true', help='Hide the progress bar')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose debug logging')

    return parser


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Apply command line flags on top of the loaded configuration."""
    if args.input_dir:
        config.input_dir = args.input_dir
    if args.mode:
        config.discovery_mode = args.mode
    if args.prefix:
        config.input_prefix = args.prefix
    if args.output:
        config.output_file = args.output
    if args.allow_empty:
        config.allow_empty_input = True
    return config


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = apply_overrides(Config(), args)
    except StreamSorterError as e:
        logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
        logging.error(f"Failed to load configuration: {e}")
        logging.error("Please ensure config.py exists (copy from config.template.py) or set SPOTIFY_ID/SPOTIFY_SECRET")
        return e.exit_code

    level = logging.DEBUG if args.verbose else getattr(logging, str(config.log_level).upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.debug(f"Configuration loaded: {config}")

    sorter = StreamSorter(config, show_progress=not args.no_progress, make_backup=args.backup)
    try:
        result = sorter.run()
    except StreamSorterError as e:
        logging.error(f"❌ {type(e).__name__}: {e}")
        logging.error(f"Aborted while {sorter.state}; no output written")
        return e.exit_code
    except KeyboardInterrupt:
        logging.error("Interrupted; no output written")
        return 130

    if result.output_path is None:
        logging.info("No streams to sort - nothing written")
    else:
        logging.info(f"✅ Done! Sorted streams written to {result.output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
