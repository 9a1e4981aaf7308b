"""Provider REST client: single-call transport and paged listings."""

import json

import httpx

from .errors import APIError, ProviderError
from .types import HTTPMethod, Image, Instance, PageEnvelope, Plan, Region, StackScript
from .utils import EventLog

API_BASE_URL = "https://api.linode.com/v4"
USER_AGENT = "tunnelnode"
DEFAULT_TIMEOUT = 60.0

# Only the account's own scripts; public ones are never provisioning candidates.
MINE_FILTER = json.dumps({"mine": True})


class ProviderAPI:
    """Entry point for every call made against the provider control plane.

    A client built without a token can only reach the unauthenticated
    catalog endpoints (plans and regions).

    :param token: Personal access token, or None for an unauthenticated client
    :param base_url: Provider API base URL
    :param timeout: Per-request timeout in seconds
    :param transport: Optional httpx transport (tests pass ``httpx.MockTransport``)
    :param events: Event sink for request logging
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        base_url: str = API_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
        events: EventLog | None = None,
    ):
        self.token = token or None
        self.events = events or EventLog()
        self.client = httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
            transport=transport,
        )

    @classmethod
    def unauthenticated(cls, **kwargs) -> "ProviderAPI":
        return cls(None, **kwargs)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "ProviderAPI":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _auth_headers(self, authed: bool) -> dict:
        if not authed:
            return {}
        if not self.token:
            raise RuntimeError(
                "Attempted to perform authenticated request, but this client has no API token"
            )
        return {"Authorization": f"Bearer {self.token}"}

    def request(
        self,
        method: HTTPMethod,
        endpoint: str,
        *,
        authed: bool = True,
        params: dict | None = None,
        body: dict | None = None,
        headers: dict | None = None,
    ):
        """Perform exactly one call against the provider; never retries.

        :param method: HTTP method
        :param endpoint: Endpoint relative to the base URL (e.g. '/linode/instances')
        :param authed: Attach the bearer token
        :param params: Query parameters
        :param body: JSON request body
        :param headers: Extra request headers
        :return: Decoded JSON payload ({} for empty bodies)
        :raises APIError: On transport failure, undecodable body, or unstructured non-2xx
        :raises ProviderError: On non-2xx with a structured error body
        """
        request_headers = {**self._auth_headers(authed), **(headers or {})}
        self.events.debug("Provider request", method=method, endpoint=endpoint, params=params)
        try:
            response = self.client.request(
                method, endpoint, params=params, json=body, headers=request_headers
            )
        except httpx.HTTPError as e:
            raise APIError(
                f"{method} request ('{endpoint}') failed: {e}",
                method=method,
                endpoint=endpoint,
            ) from e

        if response.status_code > 299:
            raise decode_error(method, endpoint, response)

        if method == "HEAD" or not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise APIError(
                f"unable to decode RPC return value ({endpoint})",
                method=method,
                endpoint=endpoint,
                status=response.status_code,
            ) from e

    def get(self, endpoint: str, **kwargs):
        return self.request("GET", endpoint, **kwargs)

    def post(self, endpoint: str, **kwargs):
        return self.request("POST", endpoint, **kwargs)

    def put(self, endpoint: str, **kwargs):
        return self.request("PUT", endpoint, **kwargs)

    def delete(self, endpoint: str, **kwargs):
        return self.request("DELETE", endpoint, **kwargs)

    def head(self, endpoint: str, **kwargs):
        return self.request("HEAD", endpoint, **kwargs)

    def paginate(self, endpoint: str, **kwargs) -> "PageCursor":
        return PageCursor(self, endpoint, **kwargs)

    # -- instances ----------------------------------------------------------

    def get_instance(self, instance_id: int) -> Instance:
        endpoint = f"/linode/instances/{instance_id}"
        return _expect_record(self.get(endpoint), endpoint, "GET")

    def list_instances(self) -> list[Instance]:
        endpoint = "/linode/instances"
        return _expect_records(collect(self.paginate(endpoint)), endpoint)

    def create_instance(self, payload: dict) -> Instance:
        endpoint = "/linode/instances"
        return _expect_record(self.post(endpoint, body=payload), endpoint, "POST")

    def rebuild_instance(self, instance_id: int, payload: dict) -> Instance:
        endpoint = f"/linode/instances/{instance_id}/rebuild"
        return _expect_record(self.post(endpoint, body=payload), endpoint, "POST")

    def boot_instance(self, instance_id: int) -> None:
        self.post(f"/linode/instances/{instance_id}/boot")

    def delete_instance(self, instance_id: int) -> None:
        """Irreversibly delete an instance."""
        self.delete(f"/linode/instances/{instance_id}")

    # -- catalogs -------------------------------------------------------------

    def list_scripts(self) -> list[StackScript]:
        """List the account's private provisioning scripts."""
        cursor = self.paginate("/linode/stackscripts", headers={"X-Filter": MINE_FILTER})
        return _expect_records(collect(cursor), "/linode/stackscripts")

    def list_images(self) -> list[Image]:
        return collect(self.paginate("/images"))

    def list_plans(self) -> list[Plan]:
        """List instance types. Works without a token."""
        return collect(self.paginate("/linode/types", authed=False))

    def list_regions(self) -> list[Region]:
        """List geographic regions. Works without a token."""
        return collect(self.paginate("/regions", authed=False))


class PageCursor:
    """Walks a paged list endpoint one page per ``next()`` call.

    The first call fetches page 1 without a ``page`` parameter; later calls
    request the following page. ``next()`` returns ``(items, has_more)``
    where ``has_more`` tells whether another call is needed. Errors are
    raised immediately and a failed page is never retried.
    """

    def __init__(
        self,
        api: ProviderAPI,
        endpoint: str,
        *,
        authed: bool = True,
        params: dict | None = None,
        headers: dict | None = None,
    ):
        self.api = api
        self.endpoint = endpoint
        self.authed = authed
        self.params = dict(params or {})
        self.headers = headers
        self.page = 1

    def next(self) -> tuple[list[dict], bool]:
        params = dict(self.params)
        if self.page > 1:
            params["page"] = self.page

        payload = self.api.get(
            self.endpoint,
            authed=self.authed,
            params=params or None,
            headers=self.headers,
        )
        envelope = _expect_envelope(payload, self.endpoint)

        self.page += 1
        has_more = self.page <= envelope["pages"]
        return envelope["data"], has_more


def collect(cursor: PageCursor) -> list[dict]:
    """Drive a cursor to exhaustion and concatenate every page in provider order.

    :raises APIError: On the first failing page, with ``partial`` set to the
        items accumulated so far
    """
    items: list[dict] = []
    while True:
        try:
            page, has_more = cursor.next()
        except APIError as e:
            e.partial = items
            raise
        items.extend(page)
        if not has_more:
            return items


def decode_error(method: str, endpoint: str, response: httpx.Response) -> APIError:
    """Turn a non-2xx response into a structured or generic error."""
    fmt = f"API error ({method} '{endpoint}'): "
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and isinstance(body.get("errors"), list):
        entries = [e for e in body["errors"] if isinstance(e, dict)]
        if entries:
            return ProviderError(
                entries, method=method, endpoint=endpoint, status=response.status_code
            )

    if body:
        detail = str(body)
    else:
        detail = "No error object, details missing"
    return APIError(fmt + detail, method=method, endpoint=endpoint, status=response.status_code)


def _expect_record(payload, endpoint: str, method: str) -> dict:
    if isinstance(payload, dict) and "id" in payload:
        return payload
    raise APIError(
        f"unable to decode RPC return value ({endpoint})", method=method, endpoint=endpoint
    )


def _expect_records(items: list, endpoint: str) -> list[dict]:
    for item in items:
        _expect_record(item, endpoint, "GET")
    return items


def _expect_envelope(payload, endpoint: str) -> PageEnvelope:
    if (
        isinstance(payload, dict)
        and isinstance(payload.get("data"), list)
        and isinstance(payload.get("pages"), int)
    ):
        return payload
    raise APIError(
        "Possible API incompatibility: Unable to parse paginated response",
        method="GET",
        endpoint=endpoint,
    )
