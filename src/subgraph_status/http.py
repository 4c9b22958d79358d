import logging
import platform
import time
from contextlib import AbstractAsyncContextManager
from http import HTTPStatus
from json import JSONDecodeError
from typing import Any
from urllib.parse import urlsplit
from urllib.parse import urlunsplit

import aiohttp
import orjson

from subgraph_status import __version__
from subgraph_status.config import ResolvedHttpConfig
from subgraph_status.exceptions import FrameworkException
from subgraph_status.exceptions import InvalidRequestError
from subgraph_status.utils import json_dumps_plain

_logger = logging.getLogger(__name__)


class HTTPGateway(AbstractAsyncContextManager[None]):
    """Wrapper for aiohttp HTTP requests.

    Single attempt per call: no retries, no ratelimiting, no caching. Non-2xx responses raise
    `aiohttp.ClientResponseError`.
    """

    def __init__(self, url: str, config: ResolvedHttpConfig) -> None:
        parsed_url = urlsplit(url)
        self._url = urlunsplit((parsed_url.scheme, parsed_url.netloc, '', '', ''))
        self._alias = config.alias or parsed_url.netloc
        self._path = parsed_url.path
        self._config = config
        self._user_agent: str | None = None
        self.__session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> None:
        """Create underlying aiohttp session"""
        # NOTE: Unset timeouts keep aiohttp defaults
        default_timeout = aiohttp.client.DEFAULT_TIMEOUT
        request_timeout, connection_timeout = self._config.request_timeout, self._config.connection_timeout
        timeout = aiohttp.ClientTimeout(
            total=default_timeout.total if request_timeout is None else request_timeout,
            connect=default_timeout.connect if connection_timeout is None else connection_timeout,
            sock_read=default_timeout.sock_read,
            sock_connect=default_timeout.sock_connect,
        )

        self.__session = aiohttp.ClientSession(
            base_url=self._url,
            json_serialize=json_dumps_plain,
            connector=aiohttp.TCPConnector(limit=self._config.connection_limit),
            timeout=timeout,
        )

    async def __aexit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        """Close underlying aiohttp session"""
        _logger.debug('%s: Closing gateway session (%s)', self._alias, self._url)
        if not self.__session:
            raise FrameworkException('Session is not initialized')
        await self.__session.close()

    @property
    def url(self) -> str:
        """HTTP endpoint URL"""
        return f'{self._url}{self._path}'

    @property
    def user_agent(self) -> str:
        """Return User-Agent header compiled from aiohttp's one and the environment"""
        if self._user_agent is None:
            user_agent_args = (platform.system(), platform.machine())
            user_agent = f'subgraph-status/{__version__} ({"; ".join(user_agent_args)})'
            user_agent += ' ' + aiohttp.http.SERVER_SOFTWARE
            self._user_agent = user_agent
        return self._user_agent

    @property
    def _session(self) -> aiohttp.ClientSession:
        """Get an aiohttp session from inside of it's context manager"""
        if self.__session is None:
            raise FrameworkException('aiohttp session is not initialized. Wrap with `async with httpgateway_instance`')
        if self.__session.closed:
            raise FrameworkException('aiohttp session is closed')
        return self.__session

    async def request(
        self,
        method: str,
        url: str = '',
        **kwargs: Any,
    ) -> Any:
        """Wrapped aiohttp call with preconfigured headers"""
        if not url:
            url = self._path or '/'
        else:
            url = f"{self._path.rstrip('/')}/{url}"

        headers = kwargs.pop('headers', {})
        headers['User-Agent'] = self.user_agent

        request_string = f'{self._url}{url}'
        _logger.debug('%s: Calling `%s %s`', self._alias, method, request_string)

        started_at = time.time()
        async with self._session.request(
            method=method,
            url=url,
            headers=headers,
            raise_for_status=True,
            **kwargs,
        ) as response:
            body = await response.read()
            _logger.debug(
                '%s: `%s %s` returned %s in %.3f s',
                self._alias,
                method,
                request_string,
                response.status,
                time.time() - started_at,
            )

            if response.status == HTTPStatus.NO_CONTENT:
                raise InvalidRequestError('204 No Content', request_string)
            try:
                return orjson.loads(body)
            except JSONDecodeError as e:
                raise InvalidRequestError(f'Response is not a JSON: {e}', request_string) from e
