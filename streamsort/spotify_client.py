"""
Spotify Web API Client

Provides the small slice of the Spotify Web API the sorter needs:
- Client credentials authentication (app token, no user login)
- Track lookup by catalog id
- Album artwork extraction
- Rate limiting and retry logic for transient failures

Spotify answers HTTP 429 with a Retry-After header when an app sends too
many requests; those waits are honoured before retrying.
https://developer.spotify.com/documentation/web-api/concepts/rate-limits
"""

import time
import logging
from typing import Optional, Dict, Any

import requests

from streamsort.exceptions import AuthenticationError, RateLimitError, SpotifyAPIError

logger = logging.getLogger(__name__)

TOKEN_URL = "https://accounts.spotify.com/api/token"
API_BASE_URL = "https://api.spotify.com/v1"


class SpotifyClient:
    """
    Client for the Spotify Web API using the client credentials flow.

    Args:
        client_id: Spotify application client id
        client_secret: Spotify application client secret
        request_delay: Minimum seconds between API requests (default: 0.0)
        max_retries: Attempts per request for 429/5xx/connection errors (default: 3)
        retry_delay: Base delay for exponential backoff (default: 2.0)
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        request_delay: float = 0.0,
        max_retries: int = 3,
        retry_delay: float = 2.0,
        timeout: int = 30
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = API_BASE_URL
        self.request_delay = request_delay
        self.max_retries = max(max_retries, 1)
        self.retry_delay = retry_delay
        self.timeout = timeout
        self.last_request_time = 0.0

        self.access_token: Optional[str] = None
        self.token_expires_at = 0.0

        self.session = requests.Session()
        self.session.headers.update({'Accept': 'application/json'})

        logger.debug("SpotifyClient initialized")

    def _wait_for_rate_limit(self):
        """Apply the configured minimum delay between requests."""
        if self.request_delay > 0:
            time_since_last = time.time() - self.last_request_time
            if time_since_last < self.request_delay:
                wait_time = self.request_delay - time_since_last
                logger.debug(f"Rate limiting: waiting {wait_time:.2f}s")
                time.sleep(wait_time)
        self.last_request_time = time.time()

    def authenticate(self) -> str:
        """
        Exchange the client credentials for a bearer token.

        Returns:
            The access token

        Raises:
            AuthenticationError: if the token endpoint rejects the credentials
                or cannot be reached
        """
        try:
            r = self.session.post(
                TOKEN_URL,
                data={'grant_type': 'client_credentials'},
                auth=(self.client_id, self.client_secret),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise AuthenticationError(f"couldn't get token: {e}") from e

        if r.status_code != 200:
            raise AuthenticationError(f"couldn't get token: HTTP {r.status_code} {r.text[:200]}")

        try:
            token_data = r.json()
            self.access_token = token_data['access_token']
        except (ValueError, KeyError) as e:
            raise AuthenticationError(f"couldn't get token: malformed token response ({e})") from e
        # Refresh a minute early so a token never expires mid-request
        self.token_expires_at = time.time() + int(token_data.get('expires_in', 3600)) - 60
        logger.debug("Obtained Spotify access token")
        return self.access_token

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for API requests, refreshing the token when it has expired."""
        if self.access_token is None or time.time() >= self.token_expires_at:
            self.authenticate()
        return {'Authorization': f"Bearer {self.access_token}"}

    def _make_request(self, endpoint: str) -> Dict[str, Any]:
        """
        GET an API endpoint with rate limiting and retries.

        Retries HTTP 429 (after Retry-After), HTTP 5xx and connection errors
        with exponential backoff, and refreshes the token once on HTTP 401.

        Raises:
            RateLimitError: still rate limited after max_retries attempts
            SpotifyAPIError: any other failure
        """
        url = f"{self.base_url}/{endpoint}"
        refreshed = False
        attempt = 0
        while True:
            self._wait_for_rate_limit()
            try:
                r = self.session.get(url, headers=self._get_headers(), timeout=self.timeout)
            except (requests.exceptions.ConnectionError, requests.exceptions.Timeout) as e:
                attempt += 1
                if attempt >= self.max_retries:
                    raise SpotifyAPIError(f"Request to {url} failed: {e}") from e
                wait_time = self.retry_delay * (2 ** (attempt - 1))
                logger.warning(f"Connection error, retrying in {wait_time}s (attempt {attempt}/{self.max_retries})")
                time.sleep(wait_time)
                continue
            except requests.exceptions.RequestException as e:
                raise SpotifyAPIError(f"Request to {url} failed: {e}") from e

            if r.status_code == 200:
                try:
                    return r.json()
                except ValueError as e:
                    raise SpotifyAPIError(f"Invalid JSON from {url}: {e}") from e

            if r.status_code == 401 and not refreshed:
                logger.info("Spotify token rejected, requesting a new one")
                self.access_token = None
                refreshed = True
                continue

            if r.status_code == 429 or r.status_code >= 500:
                attempt += 1
                if attempt >= self.max_retries:
                    if r.status_code == 429:
                        raise RateLimitError(f"Rate limit exceeded for {url} after {attempt} attempts")
                    raise SpotifyAPIError(f"HTTP {r.status_code} from {url} after {attempt} attempts")
                if r.status_code == 429:
                    try:
                        wait_time = float(r.headers.get('Retry-After', self.retry_delay))
                    except ValueError:
                        wait_time = self.retry_delay
                    logger.warning(f"Rate limited by Spotify, retrying in {wait_time}s (attempt {attempt}/{self.max_retries})")
                else:
                    wait_time = self.retry_delay * (2 ** (attempt - 1))
                    logger.warning(f"Spotify returned HTTP {r.status_code}, retrying in {wait_time}s (attempt {attempt}/{self.max_retries})")
                time.sleep(wait_time)
                continue

            raise SpotifyAPIError(f"HTTP {r.status_code} from {url}: {r.text[:200]}")

    def get_track(self, track_id: str) -> Dict[str, Any]:
        """Fetch the full track object for a catalog id."""
        return self._make_request(f"tracks/{track_id}")

    def get_track_artwork(self, track_id: str) -> Optional[str]:
        """
        Return the album artwork URL for a track.

        Spotify lists album images largest first; the first one is used.
        Returns None when the album has no images.
        """
        track = self.get_track(track_id)
        images = (track.get('album') or {}).get('images') or []
        if not images:
            logger.warning(f"No album artwork for track {track_id}")
            return None
        return images[0].get('url')

    def __repr__(self) -> str:
        """String representation (sanitized - no secret)."""
        return f"SpotifyClient(url={self.base_url}, max_retries={self.max_retries})"
