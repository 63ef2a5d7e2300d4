"""HTTP client for the tracker API with retry logic and error mapping."""

import asyncio
import uuid
from typing import List, Optional

import httpx

from common.logging_config import get_logger
from common.types import FileAdvertisement, PeerAddress
from peer.exceptions import TrackerRequestError, TrackerUnavailableError

logger = get_logger(__name__)


class TrackerClient:
    """
    Async client for the tracker's JSON API.

    Requests that fail at the network level or with a 5xx status are retried
    with exponential backoff. A 4xx answer is never retried and surfaces as a
    TrackerRequestError carrying the tracker's error code.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30,
        max_retries: int = 3,
        retry_backoff_multiplier: float = 2,
        retry_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Tracker root URL, e.g. http://localhost:5001
            timeout: Per-request timeout in seconds
            max_retries: Extra attempts after the first on retryable failures
            retry_backoff_multiplier: Growth factor of the delay between retries
            retry_delay: Delay before the first retry, in seconds
            transport: Optional transport override (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self.retry_backoff_multiplier = retry_backoff_multiplier
        self.retry_delay = retry_delay
        self.session = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )
        self.request_id: Optional[str] = None
        logger.info(f"Initialized TrackerClient [base_url={self.base_url}]")

    async def _request_with_retry(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx errors and network failures.

        Raises:
            TrackerUnavailableError: If the tracker cannot be reached after retries
        """
        last_exception: Optional[Exception] = None

        self.request_id = str(uuid.uuid4())
        kwargs.setdefault('headers', {})['X-Request-ID'] = self.request_id

        logger.debug(f"Making request: {method} {endpoint} [request_id={self.request_id}]")

        for attempt in range(self.max_retries + 1):
            try:
                response = await self.session.request(method, endpoint, **kwargs)

                logger.debug(
                    f"Response received: {method} {endpoint} status={response.status_code} [request_id={self.request_id}]"
                )

                if response.status_code >= 500 and attempt < self.max_retries:
                    delay = self.retry_delay * self.retry_backoff_multiplier ** attempt
                    logger.warning(
                        f"Server error (attempt {attempt + 1}/{self.max_retries + 1}): "
                        f"{method} {endpoint} status={response.status_code}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    await asyncio.sleep(delay)
                    continue

                return response

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                if attempt < self.max_retries:
                    delay = self.retry_delay * self.retry_backoff_multiplier ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{self.max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s [request_id={self.request_id}]"
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.error(
                        f"Network error (max retries exceeded): {method} {endpoint} error={e} [request_id={self.request_id}]"
                    )

        if isinstance(last_exception, httpx.TimeoutException):
            raise TrackerUnavailableError("Tracker request timed out. Server may be overloaded.")
        raise TrackerUnavailableError(f"Cannot connect to tracker at {self.base_url}. Is it running?")

    @staticmethod
    def _raise_for_error(response: httpx.Response) -> None:
        if response.status_code < 400:
            return
        try:
            error_data = response.json()
            detail = error_data.get('detail', 'Unknown error')
            code = error_data.get('code', 'UNKNOWN')
        except ValueError:
            detail = response.text or 'Unknown error'
            code = 'UNKNOWN'
        if not isinstance(detail, str):
            detail = str(detail)
        raise TrackerRequestError(detail, code=code, status_code=response.status_code)

    async def _call(self, method: str, endpoint: str, **kwargs) -> dict:
        response = await self._request_with_retry(method, endpoint, **kwargs)
        self._raise_for_error(response)
        return response.json()

    async def register(self, username: str, password: str, address: PeerAddress) -> None:
        logger.info(f"Registering {username} at {address}")
        await self._call(
            'POST', '/register',
            json={'username': username, 'password': password, 'ip': address.ip, 'port': address.port},
        )

    async def login(self, username: str, password: str, address: PeerAddress) -> str:
        """
        Returns:
            The username the tracker logged in
        """
        logger.info(f"Logging in {username} at {address}")
        data = await self._call(
            'POST', '/login',
            json={'username': username, 'password': password, 'ip': address.ip, 'port': address.port},
        )
        return data.get('username', username)

    async def disconnect(self, username: str) -> bool:
        """
        Returns:
            True if the tracker held a presence record for username
        """
        data = await self._call('POST', '/disconnect', json={'username': username})
        return bool(data.get('removed', False))

    async def publish(self, username: str, filenames: List[str], address: PeerAddress) -> int:
        """
        Replace the tracker's advertisement set for username.

        Returns:
            Number of advertisements now held for username
        """
        data = await self._call(
            'POST', '/share_files',
            json={'username': username, 'filenames': list(filenames), 'ip': address.ip, 'port': address.port},
        )
        return data['count']

    async def query(self, filename: str = "", username: str = "") -> List[FileAdvertisement]:
        """
        List live advertisements whose filename and owner contain the given
        substrings. Empty substrings match everything.
        """
        data = await self._call(
            'GET', '/search_files',
            params={'filename': filename, 'username': username},
        )
        return [FileAdvertisement.from_dict(item) for item in data['files']]

    search = query

    async def list_peers(self) -> List[dict]:
        data = await self._call('GET', '/peers')
        return data['peers']

    async def close(self) -> None:
        """Close the HTTP session."""
        await self.session.aclose()
