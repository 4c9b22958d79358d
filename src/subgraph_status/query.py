"""GraphQL queries to the index-node API"""

from dataclasses import dataclass

from subgraph_status.utils import json_dumps_plain
from subgraph_status.validation import is_valid_id
from subgraph_status.validation import is_valid_name

BY_ID_QUERY_NAME = 'indexingStatuses'
BY_NAME_QUERY_NAME = 'indexingStatusesForSubgraphName'

STATUS_QUERY_TEMPLATE = """{{
  {name}{params}{{
    subgraph
    synced
    health
    entityCount
    fatalError {{
      handler
      message
      deterministic
      block {{
        hash
        number
      }}
    }}
    chains {{
      network
      chainHeadBlock {{
        number
        hash
      }}
      earliestBlock {{
        number
        hash
      }}
      latestBlock {{
        number
        hash
      }}
      lastHealthyBlock {{
        hash
        number
      }}
    }}
    node
  }}
}}"""


@dataclass(frozen=True)
class StatusQuery:
    """Indexing status query for a single subgraph

    :param name: Top-level query field; empty if identifier is neither ID nor name
    :param params: Field arguments including parentheses; empty along with `name`
    """

    name: str
    params: str

    @property
    def text(self) -> str:
        return STATUS_QUERY_TEMPLATE.format(name=self.name, params=self.params)

    def payload(self) -> dict[str, str]:
        return {'query': self.text}


def build_query(subgraph_id: str) -> StatusQuery:
    # NOTE: Order matters; deployment IDs are valid names too
    if is_valid_id(subgraph_id):
        return StatusQuery(
            name=BY_ID_QUERY_NAME,
            params=f'(subgraphs: [{json_dumps_plain(subgraph_id)}])',
        )
    if is_valid_name(subgraph_id):
        return StatusQuery(
            name=BY_NAME_QUERY_NAME,
            params=f'(subgraphName: {json_dumps_plain(subgraph_id)})',
        )
    # NOTE: Sent as is; index-node rejects it and the caller gets a generic error
    return StatusQuery(name='', params='')
