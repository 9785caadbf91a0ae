from abc import ABC, abstractmethod

import httpx
from httpx._types import QueryParamTypes, RequestContent
from typing import Any

from shared.errors.product_errors import ProductError
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class ClientInterface(ABC):
    """Base of every backend client (embedding provider, document store).

    Subclasses describe their backend through the abstract hooks below. Settings
    live in environment variables named ``<TYPE>_<ENGINE>_<KEY>``, e.g.
    ``STORE_OPENSEARCH_BASE_URL``; timeout and transport retries are shared per
    client type (``STORE_TIMEOUT``, ``STORE_RETRIES``). Connection retries are
    off unless configured.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        client_type = self.get_client_type().upper()
        self.timeout = helper_config.get_float_val(f"{client_type}_TIMEOUT", default=30.0)
        self.retries = self._get_transport_retries()

        self._client: httpx.AsyncClient | None = None
        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """Read every required setting once so a misconfigured engine fails at construction.

        Raises:
            ValueError: If a required setting is missing or has the wrong type.
        """
        for config in self._get_required_config():
            self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_client_type(self) -> str:
        """Client family in lowercase, e.g. "embed" or "store"."""
        return self._get_client_type().lower()

    def get_engine_name(self) -> str:
        """Engine name in lowercase, e.g. "opensearch"."""
        return self._get_engine_name().lower()

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """Read one engine setting.

        Args:
            raw_key (str): Key without prefix, e.g. "BASE_URL".
            default (Any): Fallback if unset. None makes the setting required.
            val_type (str): "string", "number", "bool" or "list".

        Raises:
            ValueError: On an unknown val_type, or a missing required setting.
        """
        readers = {
            "string": self._helper_config.get_string_val,
            "number": self._helper_config.get_number_val,
            "bool": self._helper_config.get_bool_val,
            "list": self._helper_config.get_list_val,
        }
        if val_type not in readers:
            raise ValueError(f"Unsupported value type '{val_type}' for {self.get_client_type()} setting '{raw_key}'.")
        key = f"{self.get_client_type()}_{self.get_engine_name()}_{raw_key}".upper()
        return readers[val_type](key, default=default)

    ##########################################
    ################ HOOKS ###################
    ##########################################

    @abstractmethod
    def _get_client_type(self) -> str:
        pass

    @abstractmethod
    def _get_engine_name(self) -> str:
        pass

    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """Settings that must be resolvable for this engine."""
        pass

    @abstractmethod
    def _get_auth_header(self) -> dict:
        """Headers carrying the backend credentials, empty if none are configured."""
        pass

    @abstractmethod
    def _get_base_url(self) -> str:
        pass

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        """Path of a cheap request proving the backend is up, e.g. "/_cluster/health"."""
        pass

    def _get_transport_retries(self) -> int:
        """Connection retries of the httpx transport, read from ``<TYPE>_RETRIES`` (default 0)."""
        return self._helper_config.get_int_val(f"{self.get_client_type().upper()}_RETRIES", default=0)

    @abstractmethod
    def _make_unavailable_error(self, message: str) -> ProductError:
        """The family's retryable error, e.g. StoreUnavailableError."""
        pass

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Open the connection pool bound to the backend's base URL and credentials.

        Args:
            transport: Replaces the default httpx transport (httpx.MockTransport in tests).
        """
        self._client = httpx.AsyncClient(
            base_url=self._get_base_url().rstrip("/"),
            headers=self._get_auth_header(),
            timeout=self.timeout,
            transport=transport or httpx.AsyncHTTPTransport(retries=self.retries),
        )
        self.logging.debug("Booted %s client for %s.", self.get_client_type(), self.get_engine_name())

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def do_healthcheck(self) -> httpx.Response:
        """Raises the family's unavailable error unless the backend answers the health endpoint with 2xx."""
        return await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck(), raise_on_error=True)

    def _fail(self, method: str, endpoint: str, reason: str) -> ProductError:
        self.logging.error("%s %s on %s failed: %s", method, endpoint or "/", self.get_engine_name(), reason)
        return self._make_unavailable_error(f"{self.get_engine_name()} request failed: {reason}")

    async def do_request(
        self,
        method: str = "GET",
        content: RequestContent | None = None,
        json: dict | list | None = None,
        params: QueryParamTypes | None = None,
        endpoint: str = "",
        additional_headers: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Send one request to the backend.

        Transport failures (connection, timeout) always raise. Error statuses
        are returned to the caller unless raise_on_error is set, so callers
        can give 404 its own meaning.

        Args:
            method: HTTP method.
            content: Raw body, e.g. NDJSON. Takes precedence over json.
            json: JSON body.
            params: Query parameters.
            endpoint: Path below the base URL, leading slash optional.
            additional_headers: Extra request headers.
            raise_on_error: Raise on any non-2xx status.

        Raises:
            RuntimeError: If boot() was not called.
            ProductError: The family's unavailable error.
        """
        if self._client is None:
            raise RuntimeError(f"{self.get_engine_name()} client is not booted.")

        endpoint = endpoint.strip()
        if endpoint and not endpoint.startswith("/"):
            endpoint = "/" + endpoint

        body: dict = {"content": content} if content is not None else {"json": json} if json is not None else {}
        try:
            response = await self._client.request(method, endpoint, params=params, headers=additional_headers, **body)
        except httpx.RequestError as exc:
            raise self._fail(method, endpoint, exc.__class__.__name__) from exc

        if raise_on_error and not response.is_success:
            self.logging.debug("Error body: %s", response.text[:500])
            raise self._fail(method, endpoint, f"status {response.status_code}")
        return response
