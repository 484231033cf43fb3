"""
Pytest fixtures for stream sorter tests

Provides sample streaming history records, batch file writers and a fake
Spotify client so no test touches the network.
"""
import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from streamsort.config_manager import Config


def make_record(ts, uri="spotify:track:4uLU6hMCjMI75M1A2tKUQC", **overrides):
    """Build one raw export record the way Spotify writes them."""
    record = {
        "ts": ts,
        "username": "listener",
        "platform": "Android OS 11 API 30 (Google, Pixel 4a)",
        "ms_played": 215000,
        "conn_country": "DE",
        "ip_addr_decrypted": "192.0.2.10",
        "user_agent_decrypted": "unknown",
        "master_metadata_track_name": "Never Gonna Give You Up",
        "master_metadata_album_artist_name": "Rick Astley",
        "master_metadata_album_album_name": "Whenever You Need Somebody",
        "spotify_track_uri": uri,
        "episode_name": None,
        "episode_show_name": None,
        "spotify_episode_uri": None,
        "reason_start": "trackdone",
        "reason_end": "trackdone",
        "shuffle": False,
        "skipped": None,
        "offline": False,
        "offline_timestamp": 1614880000,
        "incognito_mode": False,
    }
    record.update(overrides)
    return record


def make_episode(ts, uri="spotify:episode:BBB"):
    return make_record(
        ts,
        uri=None,
        master_metadata_track_name=None,
        master_metadata_album_artist_name=None,
        master_metadata_album_album_name=None,
        episode_name="Episode 12",
        episode_show_name="The Show",
        spotify_episode_uri=uri,
    )


class FakeSpotifyClient:
    """Stands in for SpotifyClient; counts lookups per track id."""

    def __init__(self, artwork=None, fail_on=None):
        self.artwork = artwork or {}
        self.fail_on = set(fail_on or ())
        self.calls = []

    def get_track_artwork(self, track_id):
        self.calls.append(track_id)
        if track_id in self.fail_on:
            from streamsort.exceptions import SpotifyAPIError
            raise SpotifyAPIError(f"HTTP 404 for track {track_id}")
        return self.artwork.get(track_id, f"https://i.scdn.co/image/{track_id}")


@pytest.fixture
def fake_client():
    return FakeSpotifyClient()


@pytest.fixture
def write_batch(tmp_path):
    """Return a helper that writes a list of records as a JSON batch file."""
    def _write(name, records, directory=None):
        path = (directory or tmp_path) / name
        path.write_text(json.dumps(records, ensure_ascii=False), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def env_config(tmp_path, monkeypatch):
    """Config loaded from environment variables pointing at tmp_path."""
    monkeypatch.chdir(tmp_path)
    for name in ("INPUT_PREFIX", "DISCOVERY_MODE", "ALLOW_EMPTY_INPUT", "LOG_LEVEL", "MAX_RETRIES", "REQUEST_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SPOTIFY_ID", "test-client-id")
    monkeypatch.setenv("SPOTIFY_SECRET", "test-client-secret")
    monkeypatch.setenv("INPUT_DIR", str(tmp_path))
    monkeypatch.setenv("OUTPUT_FILE", str(tmp_path / "sorted_streams.json"))
    monkeypatch.setenv("REQUEST_DELAY", "0")
    monkeypatch.setenv("RETRY_DELAY", "0")
    return Config()
