"""
HTTP client of the print agent (httpx).

One ``BackendClient`` per tenant entry. It owns the bearer token and logs
in again when the backend answers 401.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from pos_agent.errors import AuthenticationError, OrderFetchError, StreamError
from pos_agent.stream import SSEParser, parse_frame
from shared.config.logging import get_logger, mask_username
from shared.utils.schemas import PrinterConfig

logger = get_logger(__name__)

# Attempts of an order fetch: the first try plus one retry
ORDER_FETCH_ATTEMPTS = 2


@dataclass(frozen=True, slots=True)
class LoginResult:
    token: str
    theater_id: int | None
    role: str | None


def unwrap_order(body: Any) -> dict[str, Any] | None:
    """The order sits under ``data``, ``order`` or at the root of the response."""
    if not isinstance(body, dict):
        return None
    for key in ("data", "order"):
        inner = body.get(key)
        if isinstance(inner, dict):
            return inner
    return body


def _detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("error") or body.get("message") or body)
    return str(body)


class BackendClient:
    """
    REST + stream client for one agent account.

    Args:
        base_url: Backend root, e.g. ``http://pos.local:8080``.
        username: Account used by the agent.
        password: Account password.
        timeout: Timeout of regular requests in seconds.
        keepalive_timeout: Max silence on the stream before it counts as dead.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        timeout: float = 10.0,
        keepalive_timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._username = username
        self._password = password
        self._timeout = timeout
        self._keepalive_timeout = keepalive_timeout
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )
        self.token: str | None = None
        self.login_theater_id: int | None = None
        self.role: str | None = None

    async def __aenter__(self) -> BackendClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _auth_headers(self) -> dict[str, str]:
        if not self.token:
            raise AuthenticationError("Not logged in")
        return {"Authorization": f"Bearer {self.token}"}

    # =========================================================================
    # Authentication
    # =========================================================================

    async def login(self) -> LoginResult:
        """
        POST /api/auth/login.

        Raises:
            AuthenticationError: Rejected credentials or unusable response.
            httpx.HTTPError: Backend unreachable.
        """
        response = await self._http.post(
            "/api/auth/login",
            json={"username": self._username, "password": self._password},
        )
        if response.status_code != 200:
            raise AuthenticationError(
                f"Login failed with HTTP {response.status_code}: {_detail(response)}",
                status_code=response.status_code,
            )

        body = response.json()
        token = body.get("token") if isinstance(body, dict) else None
        if not token:
            raise AuthenticationError("Login succeeded but no token received")

        user = body.get("user") or {}
        theater_id = user.get("theaterId", user.get("theater_id"))
        self.token = token
        self.login_theater_id = int(theater_id) if theater_id is not None else None
        self.role = user.get("role")
        logger.info(
            "Agent logged in",
            username=mask_username(self._username),
            theater_id=self.login_theater_id,
            role=self.role,
        )
        return LoginResult(token=token, theater_id=self.login_theater_id, role=self.role)

    async def _get(self, path: str, **kwargs: Any) -> httpx.Response:
        """GET with bearer auth; one re-login when the token is rejected."""
        response = await self._http.get(path, headers=self._auth_headers(), **kwargs)
        if response.status_code == 401:
            logger.info("Token rejected, logging in again", path=path)
            await self.login()
            response = await self._http.get(path, headers=self._auth_headers(), **kwargs)
        return response

    # =========================================================================
    # Theaters and printer settings
    # =========================================================================

    async def list_theaters(self) -> list[dict[str, Any]]:
        response = await self._get("/api/theaters")
        response.raise_for_status()
        body = response.json()
        theaters = body.get("data") or body.get("theaters") or []
        return [t for t in theaters if isinstance(t, dict)]

    async def get_printer_config(self, theater_id: int | None = None) -> PrinterConfig:
        """
        GET /api/settings/pos-printer.

        Raises:
            httpx.HTTPError: Request failed.
            ValueError: Response is not a printer configuration.
        """
        params = {"theaterId": theater_id} if theater_id is not None else None
        response = await self._get("/api/settings/pos-printer", params=params)
        response.raise_for_status()
        body = response.json()
        config = (body.get("data") or {}).get("config") if isinstance(body, dict) else None
        if not isinstance(config, dict):
            return PrinterConfig()
        try:
            return PrinterConfig.model_validate(config)
        except PydanticValidationError as e:
            raise ValueError(f"Invalid printer config: {e}") from e

    # =========================================================================
    # Orders
    # =========================================================================

    async def get_order(self, theater_id: int | str, order_id: int | str) -> dict[str, Any]:
        """
        GET /api/orders/theater/{theater_id}/{order_id} with one retry on
        transport errors, timeouts and 5xx.

        Raises:
            OrderFetchError: Order missing or backend unavailable after retry.
        """
        path = f"/api/orders/theater/{theater_id}/{order_id}"
        last_error = "unknown error"

        for attempt in range(1, ORDER_FETCH_ATTEMPTS + 1):
            try:
                response = await self._get(path)
            except (httpx.TimeoutException, httpx.TransportError) as e:
                last_error = f"{type(e).__name__}: {e}"
                logger.warning("Order fetch failed", order_id=order_id, attempt=attempt, error=last_error)
                continue

            if response.status_code >= 500:
                last_error = f"HTTP {response.status_code}"
                logger.warning("Order fetch failed", order_id=order_id, attempt=attempt, error=last_error)
                continue

            if response.status_code != 200:
                raise OrderFetchError(
                    f"Order {order_id} fetch failed with HTTP {response.status_code}: {_detail(response)}"
                )

            order = unwrap_order(response.json())
            if order is None:
                raise OrderFetchError(f"Order {order_id} response is not an object")
            return order

        raise OrderFetchError(f"Order {order_id} fetch failed after retry: {last_error}")

    # =========================================================================
    # Event stream
    # =========================================================================

    async def events(self, theater_id: int | str) -> AsyncIterator[dict[str, Any]]:
        """
        Open the theater's POS stream and yield decoded frames (connected,
        pos_order and keepalive objects).

        The read timeout is the keep-alive timeout, so a silent stream raises
        instead of hanging forever.

        Raises:
            StreamError: Rejected (``status_code`` set), dropped, timed out
                or closed by the server.
        """
        timeout = httpx.Timeout(self._timeout, read=self._keepalive_timeout)
        try:
            async with self._http.stream(
                "GET",
                f"/api/pos-stream/{theater_id}",
                headers={**self._auth_headers(), "Accept": "text/event-stream"},
                timeout=timeout,
            ) as response:
                if response.status_code != 200:
                    await response.aread()
                    raise StreamError(
                        f"Stream rejected with HTTP {response.status_code}: {_detail(response)}",
                        status_code=response.status_code,
                    )

                parser = SSEParser()
                async for line in response.aiter_lines():
                    message = parser.feed_line(line)
                    if message is None:
                        continue
                    frame = parse_frame(message.data)
                    if frame is not None:
                        yield frame
        except httpx.TimeoutException as e:
            raise StreamError(f"No data for {self._keepalive_timeout:.0f}s: {e}") from e
        except httpx.HTTPError as e:
            raise StreamError(f"Stream transport error: {type(e).__name__}: {e}") from e

        raise StreamError("Stream closed by server")
