"""
Stream sorting pipeline

Runs the stages in order: load the batch files, sort them chronologically,
attach artwork, write the sorted file. A stage that fails raises one of the
``streamsort.exceptions`` errors; nothing is written unless every stage
before the writer succeeded.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from streamsort.config_manager import Config
from streamsort.enrichment import ArtworkCache, ArtworkEnricher, EnrichmentSummary
from streamsort.io_utils import write_sorted_streams
from streamsort.loader import load_streams
from streamsort.merger import sort_streams
from streamsort.models import Stream
from streamsort.spotify_client import SpotifyClient

logger = logging.getLogger(__name__)


class PipelineState:
    START = 'start'
    LOADING = 'loading'
    MERGING = 'merging'
    ENRICHING = 'enriching'
    WRITING = 'writing'
    DONE = 'done'
    ABORTED = 'aborted'


@dataclass
class RunResult:
    streams: List[Stream]
    summary: Optional[EnrichmentSummary] = None
    output_path: Optional[Path] = None


class StreamSorter:
    """
    Orchestrates one run of the sorter.

    Args:
        config: Loaded configuration (credentials are only checked once
            there is something to enrich)
        client: Catalog client to use instead of building a SpotifyClient
        cache: Artwork cache to use instead of a fresh one
        show_progress: Draw the enrichment progress bar
        make_backup: Back up an existing output file before replacing it
    """

    def __init__(
        self,
        config: Config,
        client=None,
        cache: Optional[ArtworkCache] = None,
        show_progress: bool = True,
        make_backup: bool = False,
    ):
        self.config = config
        self.client = client
        self.cache = cache
        self.show_progress = show_progress
        self.make_backup = make_backup
        self.state = PipelineState.START

    def _enter(self, state: str) -> None:
        logger.debug(f"Pipeline: {self.state} -> {state}")
        self.state = state

    def _build_client(self) -> SpotifyClient:
        self.config.validate()
        client = SpotifyClient(
            client_id=self.config.spotify_id,
            client_secret=self.config.spotify_secret,
            request_delay=self.config.request_delay,
            max_retries=self.config.max_retries,
            retry_delay=self.config.retry_delay,
            timeout=self.config.request_timeout,
        )
        # Fail on bad credentials before the first lookup
        client.authenticate()
        return client

    def run(self) -> RunResult:
        try:
            self.config.validate(require_credentials=False)

            self._enter(PipelineState.LOADING)
            streams = load_streams(
                Path(self.config.input_dir),
                mode=self.config.discovery_mode,
                prefix=self.config.input_prefix,
                allow_empty=self.config.allow_empty_input,
            )
            logger.info(f"{len(streams)} streams total.")
            if not streams:
                self._enter(PipelineState.DONE)
                return RunResult(streams=[])

            self._enter(PipelineState.MERGING)
            streams = sort_streams(streams)

            self._enter(PipelineState.ENRICHING)
            if self.client is None:
                self.client = self._build_client()
            enricher = ArtworkEnricher(self.client, cache=self.cache, show_progress=self.show_progress)
            summary = enricher.enrich(streams)
            self.cache = enricher.cache

            self._enter(PipelineState.WRITING)
            output_path = write_sorted_streams(streams, Path(self.config.output_file), make_backup=self.make_backup)

            self._enter(PipelineState.DONE)
            return RunResult(streams=streams, summary=summary, output_path=output_path)
        except Exception:
            self._enter(PipelineState.ABORTED)
            raise
