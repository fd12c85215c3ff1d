"""
contractfuzz Service Caller
Executes one fuzzed request against the service under test
"""

import copy
import logging
import re
import time
from datetime import datetime
from typing import Any, Dict, FrozenSet, Optional
from dataclasses import dataclass, field
from enum import Enum
import httpx

from core.logging import get_logger

PATH_PARAM_PATTERN = re.compile(r"\{([^}/]+)\}")
USER_AGENT = "contractfuzz/0.1.0"


class RequestMethod(str, Enum):
    """HTTP request methods"""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"

    @property
    def has_body(self) -> bool:
        return self in (RequestMethod.POST, RequestMethod.PUT, RequestMethod.PATCH)


@dataclass
class Request:
    """Fuzzed request handed to the service caller

    ``payload`` is the JSON document; ``body_text`` replaces it as the raw
    request body while the payload still feeds path and query parameters.
    """
    method: RequestMethod
    path: str
    payload: Any = None
    headers: Dict[str, str] = field(default_factory=dict)
    query_params: FrozenSet[str] = frozenset()
    body_text: Optional[str] = None


@dataclass
class Response:
    """HTTP response representation"""
    status_code: int
    headers: Dict[str, str]
    content: bytes
    text: str
    url: str
    elapsed: float
    request_method: str
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def is_success(self) -> bool:
        """Check if response indicates success (2xx status)"""
        return 200 <= self.status_code < 300

    @property
    def is_client_error(self) -> bool:
        """Check if response is a client error (4xx status)"""
        return 400 <= self.status_code < 500

    @property
    def is_server_error(self) -> bool:
        """Check if response is a server error (5xx status)"""
        return 500 <= self.status_code < 600

    @property
    def is_connection_error(self) -> bool:
        """Check if the request never reached the service"""
        return self.status_code == 0


class ServiceCaller:
    """
    Service caller backed by an async httpx client

    Path parameters are taken from the configured URL parameters first and
    from the payload second. Body-less methods send top-level payload fields
    as query parameters.
    """

    def __init__(self, server: str, timeout: float = 10.0, verify_ssl: bool = True,
                 url_params: Optional[Dict[str, str]] = None):
        self.server = server.rstrip('/')
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.url_params = dict(url_params or {})

        self.logger = get_logger(__name__).bind(component="service_caller")
        self.client: Optional[httpx.AsyncClient] = None

    async def _ensure_client(self) -> None:
        """Ensure HTTP client is initialized"""
        if self.client is None:
            logging.getLogger("httpx").setLevel(logging.WARNING)
            self.client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                verify=self.verify_ssl,
                follow_redirects=False
            )
            self.logger.debug("HTTP client initialized", server=self.server)

    def build_url(self, path: str, payload: Any) -> str:
        """
        Substitute ``{name}`` path templates

        Payload values used for the path are removed from ``payload`` in place.
        """
        def _substitute(match: re.Match) -> str:
            name = match.group(1)
            if name in self.url_params:
                return str(self.url_params[name])
            if isinstance(payload, dict) and name in payload:
                return str(payload.pop(name))
            return match.group(0)

        return self.server + PATH_PARAM_PATTERN.sub(_substitute, path)

    async def call(self, request: Request) -> Response:
        """
        Execute a single request

        Transport failures are returned as a response with status code 0 so
        the attempt is still classified.
        """
        await self._ensure_client()

        payload = copy.deepcopy(request.payload)
        url = self.build_url(request.path, payload)

        headers = {
            'Accept': 'application/json',
            'User-Agent': USER_AGENT,
        }
        headers.update(request.headers)

        request_kwargs: Dict[str, Any] = {'headers': headers}
        params = {}
        if isinstance(payload, dict):
            carried_in_query = request.query_params if request.method.has_body else set(payload.keys())
            for name in list(payload.keys()):
                if name in carried_in_query and not isinstance(payload[name], (dict, list)):
                    params[name] = self._query_value(payload.pop(name))
        if params:
            request_kwargs['params'] = params

        if request.method.has_body:
            headers.setdefault('Content-Type', 'application/json')
            if request.body_text is not None:
                request_kwargs['content'] = request.body_text
            else:
                request_kwargs['json'] = payload

        start_time = time.time()
        try:
            httpx_response = await self.client.request(request.method.value, url, **request_kwargs)
        except httpx.HTTPError as e:
            self.logger.warning("Request failed", method=request.method.value, url=url, error=str(e))
            return Response(
                status_code=0,
                headers={},
                content=b'',
                text=str(e),
                url=url,
                elapsed=time.time() - start_time,
                request_method=request.method.value
            )

        response = Response(
            status_code=httpx_response.status_code,
            headers=dict(httpx_response.headers),
            content=httpx_response.content,
            text=httpx_response.text,
            url=str(httpx_response.url),
            elapsed=time.time() - start_time,
            request_method=request.method.value
        )
        self.logger.debug("Request completed",
                          method=request.method.value,
                          url=url,
                          status_code=response.status_code,
                          elapsed=response.elapsed)
        return response

    @staticmethod
    def _query_value(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    async def close(self) -> None:
        """Close HTTP client and cleanup resources"""
        if self.client:
            await self.client.aclose()
            self.client = None
            self.logger.debug("HTTP client closed")

    async def __aenter__(self):
        """Async context manager entry"""
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()
