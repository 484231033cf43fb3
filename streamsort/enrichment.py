"""
Artwork enrichment

Attaches an album artwork URL to every stream whose track URI points at a
Spotify track. Lookups go through an ArtworkCache so each distinct track is
fetched from the API at most once per run, however many streams share it.
"""

import logging
import sys
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from tqdm import tqdm

from streamsort.keys import extract_resource_key
from streamsort.models import ResourceKey, Stream

logger = logging.getLogger(__name__)


class ArtworkCache:
    """
    Per-run memo of track artwork, keyed by ResourceKey.

    ``get_or_fetch`` holds a per-key lock around the remote call, so callers
    asking for the same key at the same time wait for the one in-flight
    fetch instead of issuing their own. A failed fetch caches nothing.
    """

    def __init__(self):
        self._artwork: Dict[ResourceKey, Optional[str]] = {}
        self._key_locks: Dict[ResourceKey, threading.Lock] = {}
        self._lock = threading.Lock()
        self.fetch_count = 0

    def __len__(self) -> int:
        return len(self._artwork)

    def __contains__(self, key: ResourceKey) -> bool:
        return key in self._artwork

    def get_or_fetch(self, key: ResourceKey, fetch: Callable[[str], Optional[str]]) -> Optional[str]:
        """Return the cached artwork for ``key``, calling ``fetch(key.id)`` on a miss."""
        if not key.is_enrichable:
            raise ValueError(f"Only track keys can be cached, got {key!r}")

        with self._lock:
            if key in self._artwork:
                return self._artwork[key]
            key_lock = self._key_locks.setdefault(key, threading.Lock())

        with key_lock:
            # Another caller may have finished the fetch while we waited
            if key in self._artwork:
                return self._artwork[key]
            artwork = fetch(key.id)
            with self._lock:
                self._artwork[key] = artwork
                self.fetch_count += 1
            return artwork


@dataclass
class EnrichmentSummary:
    records: int = 0
    enriched: int = 0
    skipped: int = 0
    artworks: int = 0
    missing_artwork: int = 0


class ArtworkEnricher:
    """
    Enrich streams with artwork using any client that exposes
    ``get_track_artwork(track_id)``.

    Args:
        client: Spotify catalog client (or a test double)
        cache: Cache to reuse; a fresh one is created when omitted
        show_progress: Draw a tqdm progress bar on stderr
    """

    def __init__(self, client, cache: Optional[ArtworkCache] = None, show_progress: bool = True):
        self.client = client
        self.cache = cache if cache is not None else ArtworkCache()
        self.show_progress = show_progress

    def enrich(self, streams: List[Stream]) -> EnrichmentSummary:
        """
        Set ``artwork_url`` on every enrichable stream, in list order.

        Streams with episode, local or malformed URIs are logged and left
        untouched. Any API error propagates and aborts the whole run.
        """
        summary = EnrichmentSummary(records=len(streams))
        fetched_before = self.cache.fetch_count

        progress_bar = tqdm(
            total=len(streams), desc="Spotify artwork", unit="stream",
            file=sys.stderr, disable=not self.show_progress,
        )
        try:
            for stream in streams:
                key = extract_resource_key(stream.spotify_track_uri)
                if not key.is_enrichable:
                    logger.warning(
                        f"SpotifyTrackURI = {stream.spotify_track_uri!r} | ts = {stream.ts!r} | {stream.describe()}"
                    )
                    summary.skipped += 1
                    progress_bar.update(1)
                    continue

                artwork = self.cache.get_or_fetch(key, self.client.get_track_artwork)
                stream.artwork_url = artwork
                if artwork is None:
                    summary.missing_artwork += 1
                else:
                    summary.enriched += 1
                progress_bar.update(1)
        finally:
            progress_bar.close()

        summary.artworks = self.cache.fetch_count - fetched_before
        logger.info(f"{summary.artworks} artworks total.")
        if summary.skipped:
            logger.info(f"{summary.skipped} streams skipped (not a Spotify track)")
        if summary.missing_artwork:
            logger.info(f"{summary.missing_artwork} streams have no artwork available")
        return summary
