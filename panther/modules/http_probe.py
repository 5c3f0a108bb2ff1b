"""
HTTP reachability probe.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

import httpx
from loguru import logger

from panther.__version__ import __version__
from panther.core.errors import ErrorCategory, categorize_exception, describe_exception
from panther.modules.base import ProbeOutcome, ProbeStatus
from panther.utils.network import url_syntax_error

DEFAULT_USER_AGENT = f"panther/{__version__} (+https://github.com/panther-tool/panther)"

# Statuses that mean "this server does not do HEAD" rather than "this resource is gone"
DEFAULT_HEAD_FALLBACK_STATUSES = frozenset({405, 501})


@dataclass(frozen=True)
class ProbeConfig:
    """HTTP probe and classification policy."""
    timeout: float = 10.0
    use_head: bool = True
    head_fallback_statuses: FrozenSet[int] = DEFAULT_HEAD_FALLBACK_STATUSES
    reachable_below: int = 400
    extra_reachable_statuses: FrozenSet[int] = frozenset()
    follow_redirects: bool = True
    verify_ssl: bool = True
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self):
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if not 200 <= self.reachable_below <= 600:
            raise ValueError(f"reachable_below must be within 200..600, got {self.reachable_below}")
        # Accept any iterable of ints from callers but keep the frozen type
        object.__setattr__(self, "head_fallback_statuses", frozenset(self.head_fallback_statuses))
        object.__setattr__(self, "extra_reachable_statuses", frozenset(self.extra_reachable_statuses))


class ProbeExecutor:
    """
    Check whether a single location answers over HTTP(S).

    Every call produces exactly one ProbeOutcome. Malformed URLs are rejected
    before any network activity; network, TLS and protocol failures become
    UNREACHABLE and an expired timeout becomes TIMED_OUT.
    """

    def __init__(
        self,
        config: Optional[ProbeConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the probe executor.

        Args:
            config: Probe configuration
            transport: Optional httpx transport (used by tests to fake the network)
        """
        self.config = config or ProbeConfig()
        self._transport = transport

    def classify(self, status_code: int) -> Tuple[ProbeStatus, str]:
        """
        Classify an HTTP status code.

        Returns:
            (status, detail) tuple
        """
        if status_code < self.config.reachable_below or status_code in self.config.extra_reachable_statuses:
            return ProbeStatus.REACHABLE, f"HTTP {status_code}"
        if 400 <= status_code < 500:
            return ProbeStatus.UNREACHABLE, f"HTTP {status_code} (client error)"
        if status_code >= 500:
            return ProbeStatus.UNREACHABLE, f"HTTP {status_code} (server error)"
        return ProbeStatus.UNREACHABLE, f"HTTP {status_code}"

    async def probe(self, location: str, timeout: Optional[float] = None) -> ProbeOutcome:
        """
        Probe one location.

        Args:
            location: URL to check
            timeout: Overrides the configured timeout for this call

        Returns:
            ProbeOutcome for the location
        """
        timeout = self.config.timeout if timeout is None else timeout

        error = url_syntax_error(location)
        if error:
            logger.debug(f"Skipping malformed location {location!r}: {error}")
            return ProbeOutcome.malformed(location, error)

        start_time = time.monotonic()
        try:
            status_code, method = await asyncio.wait_for(
                self._request(location, timeout),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            duration = time.monotonic() - start_time
            logger.debug(f"{location} timed out after {duration:.2f}s")
            return ProbeOutcome.timed_out(location, timeout, duration)
        except Exception as e:
            duration = time.monotonic() - start_time
            category = categorize_exception(e)
            if category == ErrorCategory.INVALID_URL:
                logger.debug(f"HTTP client rejected {location!r}: {e}")
                return ProbeOutcome.malformed(location, describe_exception(e))
            logger.debug(f"{location} unreachable: {type(e).__name__}: {e}")
            return ProbeOutcome(
                location=location,
                status=ProbeStatus.UNREACHABLE,
                detail=describe_exception(e),
                duration=duration,
            )

        duration = time.monotonic() - start_time
        status, detail = self.classify(status_code)
        logger.debug(f"{method} {location} -> {status_code} ({duration:.2f}s)")

        return ProbeOutcome(
            location=location,
            status=status,
            detail=detail,
            status_code=status_code,
            method=method,
            duration=duration,
        )

    async def _request(self, location: str, timeout: float) -> Tuple[int, str]:
        """Issue HEAD (falling back to a body-less GET) and return (status_code, method)."""
        async with httpx.AsyncClient(
            transport=self._transport,
            timeout=timeout,
            follow_redirects=self.config.follow_redirects,
            verify=self.config.verify_ssl,
            headers={"User-Agent": self.config.user_agent},
        ) as client:
            if self.config.use_head:
                try:
                    response = await client.head(location)
                except httpx.RemoteProtocolError as e:
                    # Some servers drop the connection on HEAD instead of answering 405
                    logger.debug(f"HEAD to {location} failed ({e}), retrying with GET")
                else:
                    if response.status_code not in self.config.head_fallback_statuses:
                        return response.status_code, "HEAD"
                    logger.debug(f"HEAD rejected by {location} ({response.status_code}), retrying with GET")

            # Stream so only the status line and headers are read
            async with client.stream("GET", location) as response:
                return response.status_code, "GET"
