from itertools import chain
from typing import Iterable, List

from streamsort.models import Stream


def merge_batches(batches: Iterable[List[Stream]]) -> List[Stream]:
    """Concatenate batches in the order given."""
    return list(chain.from_iterable(batches))


def sort_streams(streams: Iterable[Stream]) -> List[Stream]:
    """Return a new list sorted by event time, oldest first.

    ``sorted`` is stable, so streams sharing a timestamp keep their input
    order (batch files often overlap at their boundaries).
    """
    return sorted(streams, key=lambda s: s.timestamp)
