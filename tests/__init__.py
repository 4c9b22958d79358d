import socket
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from dataclasses import field
from typing import Any

from aiohttp import web
from aiohttp.test_utils import TestServer

from subgraph_status import env
from subgraph_status.config import IndexNodeDatasourceConfig
from subgraph_status.datasource import IndexNodeDatasource

env.set_test()

INDEX_NODE_PATH = '/index-node/graphql'

DEPLOYMENT_ID = 'QmaeqS5CL1GZSNYKB3wvqbKxEe6YRWsXqgWGzGEqMPWbHj'
SUBGRAPH_NAME = 'uniswap/uniswap-v3'

MINIMAL_STATUS: dict[str, Any] = {
    'subgraph': 'X',
    'synced': True,
    'health': 'healthy',
    'entityCount': '10',
    'chains': [],
}

FULL_STATUS: dict[str, Any] = {
    'subgraph': DEPLOYMENT_ID,
    'synced': False,
    'health': 'failed',
    'entityCount': '2453',
    'fatalError': {
        'handler': 'handleSwap',
        'message': 'Mapping aborted at ~lib/@graphprotocol/graph-ts/index.ts',
        'deterministic': True,
        'block': {
            'hash': '0x2e7c0f1b4e7a0b5e9d6f1bfa5c3a87d3bb2c4f1c1e9a7c77ddc1dbf8c0a4e6d1',
            'number': '12370624',
        },
    },
    'nonFatalErrors': [
        {
            'message': 'store error: duplicate key',
            'deterministic': False,
        },
    ],
    'chains': [
        {
            'network': 'mainnet',
            'chainHeadBlock': {'number': '19000000', 'hash': '0xaa'},
            'earliestBlock': {'number': '12369621', 'hash': '0xbb'},
            'latestBlock': {'number': '12370623', 'hash': '0xcc'},
            'lastHealthyBlock': {'hash': '0xdd', 'number': '12370623'},
        },
    ],
    'node': 'indexer_001',
}


@dataclass
class FakeIndexNode:
    """Replies to every status query with the same response, records incoming requests"""

    payload: Any = None
    status: int = 200
    body: bytes | None = None
    requests: list[dict[str, Any]] = field(default_factory=list)
    headers: list[dict[str, str]] = field(default_factory=list)

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append(await request.json())
        self.headers.append(dict(request.headers))
        if self.body is not None:
            return web.Response(body=self.body, status=self.status)
        return web.json_response(self.payload, status=self.status)

    @property
    def last_query(self) -> str:
        return str(self.requests[-1]['query'])


@asynccontextmanager
async def fake_index_node(
    payload: Any = None,
    status: int = 200,
    body: bytes | None = None,
) -> AsyncIterator[tuple[FakeIndexNode, IndexNodeDatasource]]:
    """Run a fake index-node and yield it along with a datasource pointed to it; datasource is not entered"""
    node = FakeIndexNode(payload=payload, status=status, body=body)
    app = web.Application()
    app.router.add_post(INDEX_NODE_PATH, node.handle)

    async with TestServer(app) as server:
        config = IndexNodeDatasourceConfig(url=str(server.make_url(INDEX_NODE_PATH)))
        yield node, IndexNodeDatasource(config)


def unreachable_datasource() -> IndexNodeDatasource:
    """Datasource pointed to a local port nobody listens on"""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(('127.0.0.1', 0))
        port = sock.getsockname()[1]
    config = IndexNodeDatasourceConfig(url=f'http://127.0.0.1:{port}{INDEX_NODE_PATH}')
    return IndexNodeDatasource(config)


def by_id_response(*items: dict[str, Any]) -> dict[str, Any]:
    return {'data': {'indexingStatuses': list(items)}}


def by_name_response(*items: dict[str, Any]) -> dict[str, Any]:
    return {'data': {'indexingStatusesForSubgraphName': list(items)}}
