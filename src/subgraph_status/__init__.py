"""Subgraph indexing status proxy.

Contains software version and other metadata.
"""

import importlib.metadata as _pkg

__version__ = _pkg.version('subgraph-status')
