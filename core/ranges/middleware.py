# rangeblock/core/ranges/middleware.py
import inspect
import ipaddress
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional, Union, Awaitable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp

from utils.errors import ErrorCode
from .table import RangeTable

logger = logging.getLogger(f"rangeblock.{__name__}")


def _is_public(value: str) -> bool:
    try:
        return not ipaddress.ip_address(value).is_private
    except ValueError:
        return False


def get_client_ip(request: Request, trust_forwarded: bool = True) -> Optional[str]:
    """
    Best guess at the client's real address.

    With forwarding headers trusted: the first public address in
    X-Forwarded-For, else X-Real-IP, else the socket peer.
    """
    peer = request.client.host if request.client else None
    if not trust_forwarded:
        return peer

    forwarded_for = request.headers.get("x-forwarded-for", "")
    for candidate in forwarded_for.split(","):
        candidate = candidate.strip()
        if candidate and _is_public(candidate):
            return candidate

    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip
    return peer


class ResponseSink:
    """Lets a confirmer write the response for a blocked request itself."""
    def __init__(self):
        self.response: Optional[Response] = None

    def send(self, response: Response):
        self.response = response

    @property
    def written(self) -> bool:
        return self.response is not None


class BlockConfirmer(ABC):
    """
    Consulted only when a request's IP is inside a tracked range.
    Return True to block, False to let the request through anyway.
    """
    @abstractmethod
    def decide(self, sink: ResponseSink, request: Request) -> Union[bool, Awaitable[bool]]:
        raise NotImplementedError


class AlwaysBlock(BlockConfirmer):
    def decide(self, sink: ResponseSink, request: Request) -> bool:
        return True


class FunctionConfirmer(BlockConfirmer):
    """Adapts a plain `func(sink, request) -> bool` (sync or async)."""
    def __init__(self, func: Callable[[ResponseSink, Request], Union[bool, Awaitable[bool]]]):
        self._func = func

    def decide(self, sink: ResponseSink, request: Request) -> Union[bool, Awaitable[bool]]:
        return self._func(sink, request)


def forbidden_response() -> Response:
    error = ErrorCode.RANGE_IP_FORBIDDEN
    return PlainTextResponse(error.message, status_code=error.status_code)


class RangeBlockMiddleware(BaseHTTPMiddleware):
    """
    Rejects requests whose client IP is in the range table, subject to the
    confirmer's decision. Only reads the table; never waits on the refresher.
    """
    def __init__(self,
                 app: ASGIApp,
                 table: RangeTable,
                 confirmer: Optional[Union[BlockConfirmer, Callable]] = None,
                 client_ip_resolver: Optional[Callable[[Request], Optional[str]]] = None,
                 trust_forwarded: bool = True):
        super().__init__(app)
        self.table = table
        if confirmer is None:
            confirmer = AlwaysBlock()
        elif not isinstance(confirmer, BlockConfirmer):
            confirmer = FunctionConfirmer(confirmer)
        self.confirmer: BlockConfirmer = confirmer
        self._resolve_ip = client_ip_resolver or (lambda request: get_client_ip(request, trust_forwarded))

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        client_ip = self._resolve_ip(request)
        if not self.table.lookup(client_ip):
            return await call_next(request)

        sink = ResponseSink()
        decision = self.confirmer.decide(sink, request)
        if inspect.isawaitable(decision):
            decision = await decision

        if not decision:
            logger.debug(f"Range match for {client_ip} on {request.url.path} overridden by confirmer.")
            return await call_next(request)

        logger.info(f"Blocked request from {client_ip} to {request.url.path}")
        if sink.written:
            return sink.response
        return forbidden_response()
