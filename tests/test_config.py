import logging
from pathlib import Path

import pytest

from subgraph_status.config import DEFAULT_API_PORT
from subgraph_status.config import DEFAULT_INDEX_NODE_URL
from subgraph_status.config import ResolvedHttpConfig
from subgraph_status.config import StatusConfig
from subgraph_status.datasource import IndexNodeDatasource
from subgraph_status.exceptions import ConfigurationError

CONFIG_YAML = """
# comments are stripped
datasource:
  url: ${INDEX_NODE_URL:-http://localhost:8030/graphql/}
  http:
    request_timeout: 10
api:
  host: 0.0.0.0
  port: ${API_PORT:-8080}
logging:
  subgraph_status: DEBUG
  aiohttp: warning
"""


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / 'subgraph-status.yaml'
    path.write_text(CONFIG_YAML)
    return path


def test_defaults() -> None:
    config = StatusConfig.load([])

    assert config.datasource.url == DEFAULT_INDEX_NODE_URL
    assert config.datasource.http is None
    assert config.api.port == DEFAULT_API_PORT
    assert config.logging == 'INFO'


def test_load(config_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv('INDEX_NODE_URL', raising=False)
    monkeypatch.setenv('API_PORT', '9000')

    config = StatusConfig.load([config_path])

    assert config.datasource.url == 'http://localhost:8030/graphql'
    assert config.datasource.http is not None
    assert config.datasource.http.request_timeout == 10
    assert config.api.host == '0.0.0.0'
    assert config.api.port == 9000
    assert config.environment == {'INDEX_NODE_URL': 'http://localhost:8030/graphql/', 'API_PORT': '9000'}
    assert config.paths == [config_path]


def test_merge(config_path: Path, tmp_path: Path) -> None:
    override_path = tmp_path / 'override.yaml'
    override_path.write_text('api:\n  port: 4000\n')

    config = StatusConfig.load([config_path, override_path])

    assert config.api.port == 4000
    assert config.api.host == '127.0.0.1'
    assert config.datasource.url == 'http://localhost:8030/graphql'


def test_missing_env_variable(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv('SOME_UNSET_VARIABLE', raising=False)
    path = tmp_path / 'subgraph-status.yaml'
    path.write_text('datasource:\n  url: ${SOME_UNSET_VARIABLE}\n')

    with pytest.raises(ConfigurationError, match='SOME_UNSET_VARIABLE'):
        StatusConfig.load([path])


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match='missing'):
        StatusConfig.load([tmp_path / 'nope.yaml'])


@pytest.mark.parametrize(
    ('content', 'location'),
    [
        ('datasource:\n  url: ftp://example.com\n', 'datasource.url'),
        ('api:\n  port: http\n', 'api.port'),
        ('api:\n  hots: localhost\n', 'api.hots'),
        ('prometheus:\n  host: localhost\n', 'prometheus'),
    ],
)
def test_invalid(tmp_path: Path, content: str, location: str) -> None:
    path = tmp_path / 'subgraph-status.yaml'
    path.write_text(content)

    with pytest.raises(ConfigurationError) as exc_info:
        StatusConfig.load([path])

    assert f'- {location}' in exc_info.value.msg


def test_not_a_mapping(tmp_path: Path) -> None:
    path = tmp_path / 'subgraph-status.yaml'
    path.write_text('- just\n- a\n- list\n')

    with pytest.raises(ConfigurationError, match='mapping'):
        StatusConfig.load([path])


def test_set_up_logging(config_path: Path) -> None:
    config = StatusConfig.load([config_path])
    config.set_up_logging()

    assert logging.getLogger('subgraph_status').level == logging.DEBUG
    assert logging.getLogger('aiohttp').level == logging.WARNING


def test_invalid_logging_level() -> None:
    config = StatusConfig.load([])
    config.logging = 'LOUD'

    with pytest.raises(ConfigurationError, match='LOUD'):
        config.set_up_logging()


def test_dump(config_path: Path) -> None:
    config = StatusConfig.load([config_path])
    dumped = config.dump()

    assert 'url: http://localhost:8030/graphql\n' in dumped
    assert 'request_timeout: 10\n' in dumped
    # NOTE: `None` values are omitted
    assert 'alias' not in dumped


def test_resolved_http_config() -> None:
    config = StatusConfig.load([])
    datasource = IndexNodeDatasource(config.datasource)

    assert datasource.name == 'index_node'
    assert datasource.url == DEFAULT_INDEX_NODE_URL

    resolved = ResolvedHttpConfig.create(IndexNodeDatasource._default_http_config, config.datasource.http)
    assert resolved.request_timeout is None
    assert resolved.connection_limit == 100
