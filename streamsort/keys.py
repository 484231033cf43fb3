"""Lookup keys for Spotify catalog URIs.

A track URI looks like ``spotify:track:4uLU6hMCjMI75M1A2tKUQC``. Anything
else (episodes, local files, truncated or empty URIs) is classified as not
enrichable rather than rejected.
"""

from typing import Any, Optional

from streamsort.models import ResourceKey

CATALOG_NAMESPACE = 'spotify'
URI_DELIMITER = ':'


def extract_resource_key(uri: Optional[Any]) -> ResourceKey:
    """Return the ResourceKey for a record's track URI.

    Keys of kind ``track`` are enrichable. Every other shape yields a key of
    kind ``other`` that carries the raw URI as its id.
    """
    if not uri:
        return ResourceKey(ResourceKey.OTHER, '')
    if not isinstance(uri, str):
        return ResourceKey(ResourceKey.OTHER, str(uri))

    parts = uri.split(URI_DELIMITER)
    # Length first: a single-segment URI must not be indexed past its end
    if len(parts) < 3:
        return ResourceKey(ResourceKey.OTHER, uri)
    namespace, kind, resource_id = parts[0], parts[1], parts[2]
    if namespace != CATALOG_NAMESPACE or kind != 'track' or not resource_id:
        return ResourceKey(ResourceKey.OTHER, uri)

    return ResourceKey(ResourceKey.TRACK, resource_id)
