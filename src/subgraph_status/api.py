import asyncio
import functools
import logging
from collections.abc import AsyncIterator
from collections.abc import Awaitable
from collections.abc import Callable
from http import HTTPStatus

import orjson
from aiohttp import web

from subgraph_status.config import ApiConfig
from subgraph_status.datasource import IndexNodeDatasource
from subgraph_status.models import Result
from subgraph_status.models import SubgraphIndexingStatus
from subgraph_status.utils import error_details
from subgraph_status.utils import json_dumps
from subgraph_status.utils import json_dumps_plain

STATUS_ROUTE = '/api/status'
SUBGRAPH_ID_PARAM = 'subgraphID'

_logger = logging.getLogger(__name__)


class StatusProxyHandler:
    """Fetches indexing status of a subgraph and wraps it into `Result`.

    Never raises; every failure is logged with full details and collapsed into a generic error so that
    upstream internals don't leak to clients.
    """

    def __init__(self, datasource: IndexNodeDatasource) -> None:
        self._datasource = datasource

    async def handle(self, subgraph_id: str) -> Result[SubgraphIndexingStatus]:
        try:
            status = await self._datasource.get_indexing_status(subgraph_id)
        except Exception as e:
            _logger.error(
                'Failed to get indexing status of `%s`: %s',
                subgraph_id,
                json_dumps_plain(error_details(e)),
            )
            return Result[SubgraphIndexingStatus].failure()

        return Result[SubgraphIndexingStatus].success(status)


handler_key = web.AppKey('handler', StatusProxyHandler)


def _json_response(result: Result[SubgraphIndexingStatus]) -> web.Response:
    return web.json_response(
        result.to_json(),
        status=HTTPStatus.OK if result.ok else HTTPStatus.BAD_GATEWAY,
        dumps=lambda x: json_dumps(x, option=orjson.OPT_SORT_KEYS).decode(),
    )


def _method_wrapper(
    method: Callable[[StatusProxyHandler, web.Request], Awaitable[web.Response]],
) -> Callable[[web.Request], Awaitable[web.Response]]:
    @functools.wraps(method)
    async def resolved_method(request: web.Request) -> web.Response:
        try:
            return await method(request.app[handler_key], request)
        except Exception as e:
            _logger.exception('Unhandled error in `%s`', request.path)
            return web.Response(body=str(e), status=HTTPStatus.INTERNAL_SERVER_ERROR)

    return resolved_method


async def _status(handler: StatusProxyHandler, request: web.Request) -> web.Response:
    # NOTE: Missing parameter is not an error on its own; an empty ID falls through to the upstream
    subgraph_id = request.query.get(SUBGRAPH_ID_PARAM, '')
    result = await handler.handle(subgraph_id)
    return _json_response(result)


def create_api(datasource: IndexNodeDatasource) -> web.Application:
    async def _datasource_ctx(app: web.Application) -> AsyncIterator[None]:
        async with datasource:
            yield

    routes = web.RouteTableDef()
    routes.get(STATUS_ROUTE)(_method_wrapper(_status))

    app = web.Application()
    app[handler_key] = StatusProxyHandler(datasource)
    app.add_routes(routes)
    app.cleanup_ctx.append(_datasource_ctx)
    return app


async def run_api(datasource: IndexNodeDatasource, config: ApiConfig) -> None:
    """Serve the status API until cancelled"""
    app = create_api(datasource)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, config.host, config.port)

    _logger.info('Serving status API on http://%s:%s%s', config.host, config.port, STATUS_ROUTE)
    try:
        await site.start()
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()
