from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# Field order of the Spotify extended streaming history export. The sorted
# output keeps this order and appends ``artwork_url``.
STREAM_FIELDS = (
    'ts',
    'username',
    'platform',
    'ms_played',
    'conn_country',
    'ip_addr_decrypted',
    'user_agent_decrypted',
    'master_metadata_track_name',
    'master_metadata_album_artist_name',
    'master_metadata_album_album_name',
    'spotify_track_uri',
    'episode_name',
    'episode_show_name',
    'spotify_episode_uri',
    'reason_start',
    'reason_end',
    'shuffle',
    'skipped',
    'offline',
    'offline_timestamp',
    'incognito_mode',
)


def parse_timestamp(value: str) -> datetime:
    """Parse an export ``ts`` value ('2021-03-04T18:22:10Z') into an aware UTC datetime."""
    if not isinstance(value, str) or not value:
        raise ValueError(f"invalid timestamp: {value!r}")
    text = value[:-1] + '+00:00' if value.endswith('Z') else value
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


@dataclass
class Stream:
    ts: str
    username: Optional[str] = None
    platform: Optional[str] = None
    ms_played: Optional[int] = None
    conn_country: Optional[str] = None
    ip_addr_decrypted: Optional[str] = None
    user_agent_decrypted: Optional[str] = None
    master_metadata_track_name: Optional[str] = None
    master_metadata_album_artist_name: Optional[str] = None
    master_metadata_album_album_name: Optional[str] = None
    spotify_track_uri: Optional[str] = None
    episode_name: Optional[str] = None
    episode_show_name: Optional[str] = None
    spotify_episode_uri: Optional[str] = None
    reason_start: Optional[str] = None
    reason_end: Optional[str] = None
    shuffle: Optional[bool] = None
    skipped: Optional[bool] = None
    offline: Optional[bool] = None
    offline_timestamp: Optional[int] = None
    incognito_mode: Optional[bool] = None
    # Fields not listed above (newer exports add audiobook columns)
    extra: Dict[str, Any] = field(default_factory=dict)
    artwork_url: Optional[str] = None
    timestamp: datetime = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self.timestamp = parse_timestamp(self.ts)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], keep_artwork: bool = False) -> 'Stream':
        """Build a Stream from one decoded export record.

        Any ``artwork_url`` in the record is dropped so enrichment starts from
        an empty slot; ``keep_artwork`` keeps it when reading our own output.

        Raises ValueError when the record is not an object or its ``ts`` is
        missing or unparseable.
        """
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        if 'ts' not in data:
            raise ValueError("record has no 'ts' field")
        known = {name: data.get(name) for name in STREAM_FIELDS}
        extra = {k: v for k, v in data.items() if k not in STREAM_FIELDS and k != 'artwork_url'}
        return cls(**known, extra=extra, artwork_url=data.get('artwork_url') if keep_artwork else None)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with every known field present; absent values stay None."""
        out = {name: getattr(self, name) for name in STREAM_FIELDS}
        out.update(self.extra)
        out['artwork_url'] = self.artwork_url
        return out

    def describe(self) -> str:
        track = self.master_metadata_track_name or self.episode_name or '?'
        artist = self.master_metadata_album_artist_name or self.episode_show_name or '?'
        return f"{track!r} by {artist!r}"


@dataclass(frozen=True)
class ResourceKey:
    """Canonical (kind, id) pair derived from a Spotify URI."""
    kind: str
    id: str

    TRACK = 'track'
    OTHER = 'other'

    @property
    def is_enrichable(self) -> bool:
        return self.kind == self.TRACK
