"""
EC2 instance metadata service (IMDS) source.

Fetches the instance id and polls the spot termination notice over HTTP
with aiohttp. When possible an IMDSv2 session token is requested first;
if the token endpoint refuses or is unreachable, requests fall back to
unauthenticated IMDSv1 calls until a token would have expired.

Note:
    Inside containers the termination notice is only visible when the
    instance metadata options allow it (HttpTokens optional, or a hop
    limit large enough for the token request to come back).
"""

import asyncio
import logging
import time

import aiohttp

from targetgroup_sidecar.config import DEFAULT_METADATA_URL
from targetgroup_sidecar.exceptions import IdentityResolutionError, TransportError
from targetgroup_sidecar.metadata.interface import MetadataSource

logger = logging.getLogger(__name__)

INSTANCE_ID_PATH = "meta-data/instance-id"
SPOT_TERMINATION_PATH = "meta-data/spot/termination-time"
TOKEN_PATH = "api/token"

TOKEN_TTL_HEADER = "X-aws-ec2-metadata-token-ttl-seconds"
TOKEN_HEADER = "X-aws-ec2-metadata-token"


class Ec2MetadataSource(MetadataSource):
    """
    Metadata source backed by the EC2 instance metadata service.

    Args:
        base_url: Base URL of the metadata service
        timeout: Total timeout in seconds for each request
        session: Optional aiohttp session. A private session is created
            (and closed by close()) when omitted.
        use_token: Whether to request an IMDSv2 session token
        token_ttl: Requested lifetime of the session token in seconds

    Example:
        >>> source = Ec2MetadataSource(timeout=1.0)
        >>> try:
        ...     instance_id = await source.get_instance_id()
        ... finally:
        ...     await source.close()
    """

    def __init__(
        self,
        base_url: str = DEFAULT_METADATA_URL,
        *,
        timeout: float = 2.0,
        session: aiohttp.ClientSession | None = None,
        use_token: bool = True,
        token_ttl: int = 21600,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session = session
        self._owns_session = session is None
        self._use_token = use_token
        self._token_ttl = token_ttl
        self._token: str | None = None
        self._token_expires_at = 0.0

    def _url(self, path: str) -> str:
        return f"{self._base_url}/{path}"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    def _token_lifetime(self) -> float:
        # Refresh a minute before the provider expires the token
        return max(self._token_ttl - 60, 1)

    async def _headers(self) -> dict[str, str]:
        if not self._use_token:
            return {}
        if time.monotonic() < self._token_expires_at:
            # A None token means IMDSv1 was chosen after a failed token request
            return {TOKEN_HEADER: self._token} if self._token is not None else {}

        url = self._url(TOKEN_PATH)
        try:
            async with self._get_session().put(
                url, headers={TOKEN_TTL_HEADER: str(self._token_ttl)}
            ) as response:
                if response.status != 200:
                    logger.debug(
                        "IMDSv2 token refused, using IMDSv1",
                        extra={"status": response.status},
                    )
                    return self._fall_back_to_v1()
                self._token = (await response.text()).strip()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(
                "IMDSv2 token request failed, using IMDSv1",
                extra={"url": url, "error": str(e)},
            )
            return self._fall_back_to_v1()

        self._token_expires_at = time.monotonic() + self._token_lifetime()
        return {TOKEN_HEADER: self._token}

    def _fall_back_to_v1(self) -> dict[str, str]:
        """Use IMDSv1 for one token lifetime instead of retrying the token on every call."""
        self._token = None
        self._token_expires_at = time.monotonic() + self._token_lifetime()
        return {}

    async def _get(self, path: str) -> tuple[int, str]:
        """
        GET a metadata path.

        Returns:
            Tuple of (HTTP status, body text)

        Raises:
            TransportError: If the request fails before a response arrives
        """
        url = self._url(path)
        headers = await self._headers()
        try:
            async with self._get_session().get(url, headers=headers) as response:
                return response.status, await response.text()
        except asyncio.TimeoutError as e:
            raise TransportError(url, "timed out") from e
        except aiohttp.ClientError as e:
            raise TransportError(url, str(e) or type(e).__name__) from e

    async def is_available(self) -> bool:
        try:
            status, _ = await self._get(INSTANCE_ID_PATH)
        except TransportError as e:
            logger.debug("Metadata service unreachable", extra={"error": str(e)})
            return False
        return status == 200

    async def get_instance_id(self) -> str:
        try:
            status, body = await self._get(INSTANCE_ID_PATH)
        except TransportError as e:
            raise IdentityResolutionError(str(e), cause=e) from e

        if status != 200:
            raise IdentityResolutionError(f"metadata service returned HTTP {status}")

        instance_id = body.strip()
        if not instance_id:
            raise IdentityResolutionError("metadata service returned an empty instance id")
        return instance_id

    async def termination_notice_present(self) -> bool:
        status, body = await self._get(SPOT_TERMINATION_PATH)
        if 200 <= status < 300:
            logger.debug("Termination notice body", extra={"termination_time": body.strip()})
            return True
        return False

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
