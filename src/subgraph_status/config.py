"""Config files parsing and processing

YAML (de)serialization lives in `subgraph_status.yaml` module. Every section is optional; an empty
config proxies to the public index-node API and serves on localhost.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

from pydantic import BeforeValidator
from pydantic import ConfigDict
from pydantic import Field
from pydantic import TypeAdapter
from pydantic import ValidationError
from pydantic.dataclasses import dataclass
from pydantic_core import to_jsonable_python

from subgraph_status import env
from subgraph_status.exceptions import ConfigurationError
from subgraph_status.yaml import StatusYAMLConfig

DEFAULT_CONFIG_PATH = Path('subgraph-status.yaml')
DEFAULT_INDEX_NODE_URL = 'https://api.thegraph.com/index-node/graphql'
DEFAULT_API_HOST = '127.0.0.1'
DEFAULT_API_PORT = 3000


def _valid_url(v: str) -> str:
    if not v.startswith(('http://', 'https://')):
        raise ValueError(f'`{v}` is not a valid HTTP URL')
    return v.rstrip('/')


Url = Annotated[str, BeforeValidator(_valid_url)]  # type: ignore


_logger = logging.getLogger(__name__)


@dataclass(config=ConfigDict(extra='forbid'), kw_only=True)
class HttpConfig:
    """Advanced configuration of HTTP client

    :param connection_limit: Number of simultaneous connections
    :param connection_timeout: Connection timeout in seconds
    :param request_timeout: Request timeout in seconds
    :param alias: Alias for this HTTP client (dev only)
    """

    connection_limit: int | None = None
    connection_timeout: int | None = None
    request_timeout: int | None = None
    alias: str | None = None


@dataclass(config=ConfigDict(extra='forbid'), kw_only=True)
class ResolvedHttpConfig:
    __doc__ = HttpConfig.__doc__

    connection_limit: int = 100
    # NOTE: `None` means aiohttp defaults
    connection_timeout: int | None = None
    request_timeout: int | None = None
    alias: str | None = None

    @classmethod
    def create(
        cls,
        default: HttpConfig,
        user: HttpConfig | None,
    ) -> ResolvedHttpConfig:
        config = cls()
        # NOTE: Apply datasource defaults first
        for merge_config in (default, user):
            if merge_config is None:
                continue
            for k, v in merge_config.__dict__.items():
                if v is not None:
                    setattr(config, k, v)
        return config


@dataclass(config=ConfigDict(extra='forbid'), kw_only=True)
class IndexNodeDatasourceConfig:
    """graph-node index-node GraphQL API

    :param url: URL of the index-node GraphQL endpoint
    :param http: HTTP connection tunables
    """

    url: Url = DEFAULT_INDEX_NODE_URL
    http: HttpConfig | None = None

    @property
    def name(self) -> str:
        return 'index_node'


@dataclass(config=ConfigDict(extra='forbid'), kw_only=True)
class ApiConfig:
    """Status API config

    :param host: Host to bind to
    :param port: Port to bind to
    """

    host: str = DEFAULT_API_HOST
    port: int = DEFAULT_API_PORT


@dataclass(config=ConfigDict(extra='forbid'), kw_only=True)
class StatusConfig:
    """subgraph-status configuration file

    :param datasource: Index-node datasource config
    :param api: Status API config
    :param logging: Modify logging verbosity
    """

    datasource: IndexNodeDatasourceConfig = Field(default_factory=IndexNodeDatasourceConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    logging: dict[str, str | int] | str | int = 'INFO'

    def __post_init__(self) -> None:
        self._paths: list[Path] = []
        self._environment: dict[str, str] = {}

    @classmethod
    def load(
        cls,
        paths: list[Path],
        environment: bool = True,
    ) -> StatusConfig:
        config_json, config_environment = StatusYAMLConfig.load(
            paths=paths,
            environment=environment,
        )

        try:
            config = TypeAdapter(cls).validate_python(config_json)
        except ValidationError as e:
            msgs = []
            for error in e.errors():
                path = '.'.join(str(loc) for loc in error['loc'])
                msgs.append(f'- {path}: {error["msg"]}')

            msg = 'Config validation failed:\n\n' + '\n'.join(msgs)
            raise ConfigurationError(msg) from e

        config._paths = paths
        config._environment = config_environment
        return config

    @property
    def paths(self) -> list[Path]:
        return self._paths

    @property
    def environment(self) -> dict[str, str]:
        return self._environment

    def dump(self) -> str:
        config_json = to_jsonable_python(self)
        return StatusYAMLConfig(config_json).dump()

    def set_up_logging(self) -> None:
        loglevels = {}
        if isinstance(self.logging, dict):
            loglevels = {**self.logging}
        else:
            loglevels['subgraph_status'] = self.logging

        # NOTE: Environment variables have higher priority
        if env.DEBUG:
            loglevels['subgraph_status'] = 'DEBUG'

        for name, level in loglevels.items():
            try:
                if isinstance(level, str):
                    level = getattr(logging, level.upper())
                if not isinstance(level, int):
                    raise ValueError
            except (AttributeError, ValueError):
                raise ConfigurationError(f'Invalid logging level `{level}` for logger `{name}`') from None

            _logger.debug('Setting `%s` logging level to %s', name, level)
            logging.getLogger(name).setLevel(level)
