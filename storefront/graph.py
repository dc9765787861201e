"""
Graph — multi-step flows as nodnod nodes.

A node is a class whose ``__compose__`` classmethod names its inputs by type:
seeded values or other nodes. nodnod discovers the dependency graph from the
target and resolves independent nodes concurrently.

    from storefront import graph as G

    @G.node
    class CustomerNode:
        def __init__(self, data: User) -> None:
            self.data = data

        @classmethod
        async def __compose__(cls, req: PlaceOrder, db: Database) -> "CustomerNode":
            ...

    customer = await G.solve(CustomerNode, {PlaceOrder: req, Database: db})

Note: modules defining nodes must not use ``from __future__ import
annotations``; nodnod reads the ``__compose__`` hints at runtime.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, cast

from nodnod import EventLoopAgent, Node, Scope, Value
from nodnod import scalar_node as node

type Seed = Mapping[type[Any], object]
"""Starting values of a run, keyed by the type nodes ask for."""


def seed(scope: Scope, values: Seed) -> None:
    for typ, value in values.items():
        scope.push(Value(typ, value))


async def drive(scope: Scope, targets: Iterable[type[Any]]) -> None:
    """Resolve ``targets`` and everything they depend on inside ``scope``."""
    agent = EventLoopAgent.build({cast(type[Node[Any, Any]], t) for t in targets})
    await agent.run(local_scope=scope, mapped_scopes={})  # type: ignore[misc]


async def solve[T](target: type[T], values: Seed) -> T:
    """
    Build ``target`` from ``values``.

    Exceptions raised by any node propagate to the caller unchanged.
    """
    scope = Scope(detail=f"solve:{target.__name__}")
    async with scope:
        seed(scope, values)
        await drive(scope, (target,))
        found = scope.get(target)
        if found is None:
            raise LookupError(f"{target.__name__} did not resolve")
        return cast(T, found.value)


__all__ = ("node", "Seed", "seed", "drive", "solve")
