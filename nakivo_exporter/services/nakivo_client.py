"""NAKIVO Direct API client."""

import itertools
import logging
from typing import Any, List, Optional, Sequence

import httpx
from pydantic import ValidationError

from ..config.models import NakivoConfig
from .nakivo_models import JobGroupListing, JobInfoListing


class NakivoError(Exception):
    """Base class for backend client failures."""


class NakivoTransportError(NakivoError):
    """Connection, timeout, HTTP status or decoding failure."""


class NakivoAPIError(NakivoError):
    """The appliance rejected the call or answered with an unexpected payload."""


class NakivoClient:
    """
    Synchronous client for the NAKIVO Direct API.

    Every call is a JSON-RPC style POST to the router endpoint. The session
    cookie issued by login() is kept by the underlying httpx client and sent
    with every later call, so one authenticated instance can be shared by
    all collectors.
    """

    def __init__(
        self,
        config: NakivoConfig,
        logger: logging.Logger = None,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """
        Initialize NAKIVO client.

        Args:
            config: Appliance connection configuration
            logger: Optional logger instance
            transport: Optional httpx transport (used by tests)
        """
        self.url = self._endpoint_url(config.address, config.port)
        self.logger = logger or logging.getLogger(__name__)
        self._tid = itertools.count(1)
        self._http = httpx.Client(
            timeout=config.timeout_seconds,
            verify=not config.insecure_skip_verify,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @staticmethod
    def _endpoint_url(address: str, port: int) -> httpx.URL:
        """Apply the configured port when the address does not carry one."""
        url = httpx.URL(address)
        if url.port is None:
            url = url.copy_with(port=port)
        return url

    def close(self):
        """Close the HTTP client."""
        self._http.close()

    def __enter__(self) -> "NakivoClient":
        return self

    def __exit__(self, *exc_info):
        self.close()

    def login(self, user: str, password: str, remember: bool = False) -> Any:
        """
        Authenticate and store the session cookie.

        Args:
            user: NAKIVO user name
            password: NAKIVO user password
            remember: Ask the appliance for a long-lived session

        Returns:
            Login payload returned by the appliance

        Raises:
            NakivoError: If the login call fails
        """
        self.logger.info(f"Logging in to {self.url} as {user}")
        return self._call(
            "AuthenticationManagement", "login", [user, password, remember]
        )

    def list_job_groups(
        self,
        client_time_offset: int = 0,
        flat: bool = False
    ) -> JobGroupListing:
        """
        Fetch the job group tree.

        Args:
            client_time_offset: Client time zone offset in milliseconds
            flat: Return a flat listing instead of the group tree

        Returns:
            JobGroupListing: Top-level groups

        Raises:
            NakivoError: If the call or payload validation fails
        """
        data = self._call(
            "JobSummaryManagement", "getGroupInfo", [None, client_time_offset, flat]
        )
        return self._parse(JobGroupListing, data)

    def fetch_job_info(
        self,
        ids: Sequence[int],
        client_time_offset: int = 0
    ) -> JobInfoListing:
        """
        Fetch job summaries by id.

        Args:
            ids: Job identifiers
            client_time_offset: Client time zone offset in milliseconds

        Returns:
            JobInfoListing: One child per job found

        Raises:
            NakivoError: If the call or payload validation fails
        """
        data = self._call(
            "JobSummaryManagement", "getJobInfo", [list(ids), client_time_offset]
        )
        return self._parse(JobInfoListing, data)

    def _call(self, action: str, method: str, data: List[Any]) -> Any:
        """
        Issue one Direct API call and unwrap its data field.

        Raises:
            NakivoTransportError: On network, HTTP or JSON decoding errors
            NakivoAPIError: If the appliance answers with an exception
        """
        payload = {
            "action": action,
            "method": method,
            "data": data,
            "type": "rpc",
            "tid": next(self._tid),
        }

        try:
            response = self._http.post(self.url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            raise NakivoTransportError(f"{action}.{method} failed: {e}") from e
        except ValueError as e:
            raise NakivoTransportError(f"{action}.{method} returned invalid JSON: {e}") from e

        if not isinstance(body, dict):
            raise NakivoAPIError(f"{action}.{method} returned unexpected payload")

        if body.get("type") == "exception":
            message = body.get("message") or "unknown error"
            raise NakivoAPIError(f"{action}.{method} rejected: {message}")

        return body.get("data")

    @staticmethod
    def _parse(model, data: Any):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise NakivoAPIError(f"Unexpected {model.__name__} payload: {e}") from e
