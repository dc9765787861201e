"""
Ops — typed requests dispatched to handlers.

A request is a frozen dataclass deriving ``Op[T, E]``; its handler is an async
function returning ``Result[T, E]``. Handler parameters are wired by
annotation:

- the request's own type receives the request;
- another registered Op type receives that op's result, computed from the
  request field holding it (see ``Resolved``);
- anything else is a shared dependency given to ``Runner.inject``.

    @dataclass(frozen=True, slots=True)
    class GetCart(Op[Cart, ShopError]):
        user_id: UserId

    async def get_cart(req: GetCart, db: Database) -> Result[Cart, ShopError]:
        ...

    runner = ops().on(GetCart, get_cart).compile().inject(Database, db)
    match await runner.run(GetCart(user_id)):
        case Ok(cart):
            ...
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass, field, fields
from typing import Any, cast, get_type_hints

from kungfu import Error, Ok, Result, Some
from nodnod import Node, Scope
from nodnod.utils.create_node import create_node

from storefront import graph as G

type Handler = Callable[..., Awaitable[Result[Any, Any]]]


class Op[T, E]:
    """Base of every request. ``T`` is the success value, ``E`` the error."""

    __slots__ = ()


class Resolved[T, E]:
    """
    A dependency op as its handler-to-be sees it: already computed.

    ``await`` returns the Result without doing any work.
    """

    __slots__ = ("result",)

    def __init__(self, result: Result[T, E]) -> None:
        self.result = result

    def __await__(self):
        async def ready() -> Result[T, E]:
            return self.result

        return ready().__await__()


def _is_op(typ: object) -> bool:
    return isinstance(typ, type) and issubclass(typ, Op)


# ═══════════════════════════════════════════════════════════════════════════════
# Handler → node
# ═══════════════════════════════════════════════════════════════════════════════

type _Nodes = dict[type[Op[Any, Any]], type[Node[Any, Any]]]


def _wire(
    op_type: type[Op[Any, Any]],
    table: dict[type[Op[Any, Any]], Handler],
    built: _Nodes,
) -> type[Node[Any, Any]]:
    """Node whose ``__compose__`` calls the handler; dependency ops get their own nodes."""
    if op_type in built:
        return built[op_type]

    handler = table[op_type]
    hints = get_type_hints(handler)
    names = list(inspect.signature(handler).parameters)

    annotations: dict[str, Any] = {"return": Result[Any, Any]}
    upstream: set[str] = set()
    for name in names:
        wanted = hints.get(name, Any)
        if wanted is not op_type and _is_op(wanted) and wanted in table:
            annotations[name] = _wire(wanted, table, built)
            upstream.add(name)
        else:
            annotations[name] = wanted

    async def compose(**kwargs: Any) -> Result[Any, Any]:
        for name in upstream:
            if isinstance(kwargs[name], (Ok, Error)):
                kwargs[name] = Resolved(kwargs[name])
        return await handler(**kwargs)

    compose.__annotations__ = annotations
    compose.__signature__ = inspect.Signature(  # type: ignore[attr-defined]
        [inspect.Parameter(n, inspect.Parameter.POSITIONAL_OR_KEYWORD) for n in names]
    )
    compose.__name__ = f"compose_{op_type.__name__}"

    built[op_type] = create_node(
        name=f"Node:{op_type.__name__}",
        base_node=Node,
        bases=(),
        namespace={"__compose__": compose, "__module__": handler.__module__},
    )
    return built[op_type]


# ═══════════════════════════════════════════════════════════════════════════════
# Builder & runner
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class OpsBuilder:
    handlers: tuple[tuple[type[Op[Any, Any]], Handler], ...] = ()

    def on(self, op_type: type[Op[Any, Any]], handler: Handler) -> OpsBuilder:
        """Register ``handler`` for ``op_type``; a later registration replaces it."""
        kept = tuple((t, h) for t, h in self.handlers if t is not op_type)
        return OpsBuilder((*kept, (op_type, handler)))

    def include(self, other: OpsBuilder) -> OpsBuilder:
        merged = self
        for op_type, handler in other.handlers:
            merged = merged.on(op_type, handler)
        return merged

    def compile(self) -> Runner:
        table = dict(self.handlers)
        built: _Nodes = {}
        for op_type in table:
            _wire(op_type, table, built)
        return Runner(nodes={t: built[t] for t in table})


@dataclass(slots=True)
class Runner:
    """
    Runs requests against the compiled handler table.

    Op-typed fields of a request, searched recursively, join the same nodnod
    run, so they resolve concurrently before the request's own handler.
    """

    nodes: _Nodes
    shared: dict[type[Any], object] = field(default_factory=dict)

    def inject(self, typ: type[Any], impl: object) -> Runner:
        self.shared[typ] = impl
        return self

    def _nested(self, req: Op[Any, Any]) -> Iterator[Op[Any, Any]]:
        for f in fields(cast(Any, req)):
            value = getattr(req, f.name)
            if isinstance(value, Op) and type(value) in self.nodes:
                yield value
                yield from self._nested(value)

    async def run[T, E](self, req: Op[T, E]) -> Result[T, E]:
        op_type = type(req)
        target = self.nodes.get(op_type)
        if target is None:
            raise LookupError(f"No handler registered for {op_type.__name__}")

        nested = list(self._nested(req))
        values: dict[type[Any], object] = {**self.shared, op_type: req}
        values.update((type(op), op) for op in nested)

        scope = Scope(detail=f"op:{op_type.__name__}")
        async with scope:
            G.seed(scope, values)
            await G.drive(scope, {target, *(self.nodes[type(op)] for op in nested)})
            match scope.retrieve(target):
                case Some(found):
                    outcome = found.value
                case _:
                    raise LookupError(f"{op_type.__name__} did not resolve")

        if isinstance(outcome, (Ok, Error)):
            return cast(Result[T, E], outcome)
        return Ok(outcome)


def ops() -> OpsBuilder:
    """Start a handler table: ``ops().on(...).compile()``."""
    return OpsBuilder()


__all__ = ("Op", "Resolved", "Handler", "OpsBuilder", "Runner", "ops")
