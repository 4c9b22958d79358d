import textwrap
from abc import ABC
from abc import abstractmethod
from dataclasses import dataclass
from typing import Any

tab = ('_' * 80) + '\n\n'


def unindent(text: str) -> str:
    """Remove indentation from text"""
    return textwrap.dedent(text).strip()


def format_help(help: str) -> str:
    """Format help text"""
    return tab + unindent(help) + '\n'


class FrameworkException(AssertionError, RuntimeError):
    pass


class Error(ABC, FrameworkException):
    """Base class for _known_ exceptions in this module.

    Instances of this class should have a nice help message explaining the error and how to fix it.
    """

    def __str__(self) -> str:
        if not self.__doc__:
            raise NotImplementedError(f'{self.__class__.__name__} has no docstring')
        return self.__doc__ + ' -> ' + ' '.join(str(a) for a in self.args)

    def help(self) -> str:
        """Return a string containing a help message for this error."""
        return format_help(self._help())

    @classmethod
    def default_help(cls) -> str:
        return format_help(
            """
                An unexpected error has occurred! Most likely it's a bug.

                Please, run the command again with `SUBGRAPH_STATUS_DEBUG=1` and report the output.
            """
        )

    @abstractmethod
    def _help(self) -> str: ...


@dataclass(repr=False)
class ConfigurationError(Error):
    """Config file is invalid"""

    msg: str

    def _help(self) -> str:
        return f"""
            {self.msg}

            Run `subgraph-status config export` to print the resolved config.
        """


@dataclass(repr=False)
class InvalidRequestError(Error):
    """API returned an unexpected response"""

    msg: str
    url: str

    def _help(self) -> str:
        return f"""
            Unexpected response: {self.msg}

            URL: `{self.url}`

            Make sure that `datasource.url` points to a graph-node index-node GraphQL endpoint.
        """


@dataclass(repr=False)
class UpstreamError(Error):
    """Index-node returned a GraphQL error"""

    errors: list[dict[str, Any]]
    url: str

    def _help(self) -> str:
        messages = '\n'.join(f'  - {e.get("message", e)}' for e in self.errors)
        return f"""
            `{self.url}` rejected the status query:

            {messages}
        """


@dataclass(repr=False)
class MissingDataError(Error):
    """Index-node response has no status for the requested subgraph"""

    query_name: str
    subgraph_id: str

    def _help(self) -> str:
        return f"""
            No item found under `data.{self.query_name}` for `{self.subgraph_id}`.

            Make sure the subgraph is deployed and indexed by the node you're querying.
        """


@dataclass(repr=False)
class InvalidDataError(Error):
    """Failed to validate index-node response against the status model"""

    msg: str
    type_: type[Any]
    data: Any

    def _help(self) -> str:
        return f"""
            Failed to validate index-node response against the status model.

              {self.msg}

            Type class: `{self.type_.__name__}`
            Data: `{self.data}`
        """
