"""
Custom exception hierarchy for the stream sorter.

Every fatal condition in the pipeline is raised as one of these classes and
propagated to the command line front end, which maps ``exit_code`` to the
process exit status. Malformed track URIs are not errors: they are
classified by the key extractor and skipped.
"""


class StreamSorterError(Exception):
    """Base exception for all stream sorter errors."""
    exit_code = 1


class DataError(StreamSorterError):
    """Base class for input data errors."""
    pass


class DiscoveryError(DataError):
    """No input batch files were found."""
    exit_code = 3


class ParseError(DataError):
    """An input batch file could not be read or holds malformed content."""
    exit_code = 4


class ConfigurationError(StreamSorterError):
    """Configuration error (missing or invalid settings)."""
    exit_code = 5


class APIError(StreamSorterError):
    """Base class for all Spotify API errors."""
    exit_code = 7


class AuthenticationError(APIError):
    """Client credentials were rejected or no token could be obtained."""
    exit_code = 6


class SpotifyAPIError(APIError):
    """Error fetching catalog data from the Spotify Web API."""
    pass


class RateLimitError(SpotifyAPIError):
    """API rate limit exceeded and retries were exhausted."""
    pass


class OutputError(StreamSorterError):
    """The sorted output file could not be written."""
    exit_code = 8
