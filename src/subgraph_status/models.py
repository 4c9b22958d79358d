"""Index-node indexing status entities and the response envelope.

Models keep track of fields that were actually present in the index-node response; `to_json`
emits only them, so whatever came from upstream goes to the client unchanged.
"""

from enum import Enum
from typing import Any
from typing import Generic
from typing import TypeVar

from humps import main as humps
from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import model_validator

DataT = TypeVar('DataT')

UNKNOWN_ERROR = 'unknown error'


class _IndexNodeModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=humps.camelize,
        populate_by_name=True,
        extra='allow',
    )

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode='json', by_alias=True, exclude_unset=True)


class SubgraphHealth(Enum):
    healthy = 'healthy'
    unhealthy = 'unhealthy'
    failed = 'failed'


class Block(_IndexNodeModel):
    hash: str
    number: str


class SubgraphError(_IndexNodeModel):
    message: str
    block: Block | None = None
    handler: str | None = None
    deterministic: bool


class ChainIndexingStatus(_IndexNodeModel):
    network: str
    chain_head_block: Block | None = None
    earliest_block: Block | None = None
    latest_block: Block | None = None
    last_healthy_block: Block | None = None


class SubgraphIndexingStatus(_IndexNodeModel):
    subgraph: str
    synced: bool
    health: SubgraphHealth
    fatal_error: SubgraphError | None = None
    non_fatal_errors: list[SubgraphError] | None = None
    chains: list[ChainIndexingStatus]
    entity_count: str
    node: str | None = None


class ResultError(BaseModel):
    model_config = ConfigDict(extra='forbid')

    message: str


class Result(BaseModel, Generic[DataT]):
    """Either `data` or `error`, never both"""

    model_config = ConfigDict(extra='forbid')

    data: DataT | None = None
    error: ResultError | None = None

    @model_validator(mode='after')
    def _check_exclusive(self) -> 'Result[DataT]':
        if (self.data is None) == (self.error is None):
            raise ValueError('Exactly one of `data` and `error` must be set')
        return self

    @classmethod
    def success(cls, data: DataT) -> 'Result[DataT]':
        return cls(data=data)

    @classmethod
    def failure(cls, message: str = UNKNOWN_ERROR) -> 'Result[DataT]':
        return cls(error=ResultError(message=message))

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode='json', by_alias=True, exclude_unset=True)
