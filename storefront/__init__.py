"""
storefront — catalog, cart, checkout and seller back office.

    from storefront import graph as G   # Computation graphs
    from storefront import cache as C   # Read-through caching
    from storefront.ops import ops      # Request dispatch

    from storefront.service import build_runner
    from storefront.api import create_app
"""

from storefront import cache
from storefront import graph
from storefront import lift
from storefront.domain import Cents

__version__ = "0.1.0"

__all__ = (
    "cache",
    "graph",
    "lift",
    "Cents",
)
