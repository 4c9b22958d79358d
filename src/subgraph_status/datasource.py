import logging
from typing import Any

from aiohttp.hdrs import METH_POST

from subgraph_status.config import HttpConfig
from subgraph_status.config import IndexNodeDatasourceConfig
from subgraph_status.config import ResolvedHttpConfig
from subgraph_status.exceptions import MissingDataError
from subgraph_status.exceptions import UpstreamError
from subgraph_status.http import HTTPGateway
from subgraph_status.models import SubgraphIndexingStatus
from subgraph_status.query import StatusQuery
from subgraph_status.query import build_query
from subgraph_status.utils import parse_object

_logger = logging.getLogger(__name__)


class IndexNodeDatasource(HTTPGateway):
    """graph-node index-node GraphQL API client"""

    _default_http_config = HttpConfig()

    def __init__(self, config: IndexNodeDatasourceConfig) -> None:
        self._datasource_config = config
        http_config = ResolvedHttpConfig.create(self._default_http_config, config.http)
        http_config.alias = http_config.alias or config.name
        super().__init__(
            url=config.url,
            config=http_config,
        )

    @property
    def name(self) -> str:
        return self._datasource_config.name

    async def query(self, query: StatusQuery) -> Any:
        """Send a status query, return `data` part of the response"""
        _logger.debug('%s: Querying `%s%s`', self.name, query.name, query.params)
        response = await self.request(METH_POST, json=query.payload())

        if not isinstance(response, dict):
            raise UpstreamError([{'message': f'Unexpected response: {response}'}], self.url)
        data = response.get('data')
        if response.get('errors') and not data:
            raise UpstreamError(response['errors'], self.url)
        return data

    async def get_indexing_status(self, subgraph_id: str) -> SubgraphIndexingStatus:
        """Get indexing status of a single subgraph by deployment ID or name"""
        query = build_query(subgraph_id)
        data = await self.query(query)

        # NOTE: Only the first item is used even if the node has several deployments for the name
        items = data.get(query.name) if isinstance(data, dict) else None
        if not isinstance(items, list) or not items:
            raise MissingDataError(query.name, subgraph_id)
        return parse_object(SubgraphIndexingStatus, items[0])
