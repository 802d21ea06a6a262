"""State Container — single-writer owner of one snapshot, its observers and events.

Invariants:
    - The snapshot changes only through _next(), called from the container's
      own handlers (never by external callers)
    - mutate() dispatches each request to exactly one handler, chosen by the
      discriminant field; handler keys equal the declared action literals
    - Unknown actions raise UnknownMutationError before any handler runs and
      leave the snapshot untouched
    - Concurrent mutate() calls are NOT serialized: a handler that suspends on
      IO may publish after a later request finished (last writer wins)

Design Decisions:
    - Explicit handler dict built by each subclass: every action->handler
      mapping visible in one place, no getattr magic
    - Pydantic discriminated union for requests: plain mappings (JSON bodies)
      and model instances go through the same closed schema
    - Exhaustiveness checked at construction (TypeError), the closest Python
      gets to a compile-time exhaustive match
    - No hidden request queue: callers see `loading`-style fields and decide
      whether to disable controls while a request is in flight
"""

import inspect
import logging
from collections.abc import Mapping
from functools import lru_cache
from typing import Annotated, Any, Awaitable, Callable, Generic, TypeVar, Union, get_args

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from statebox.core.domain_types import DEFAULT_DISCRIMINATOR
from statebox.core.errors import InvalidMutationError, UnknownMutationError
from statebox.core.event_channel import EventChannel
from statebox.core.path import MISSING, parse_path, resolve_path
from statebox.core.snapshot import merge_snapshot
from statebox.core.stream import Stream
from statebox.core.value_stream import ValueStream

logger = logging.getLogger(__name__)

S = TypeVar("S")

Handler = Callable[[Any], Awaitable[None] | None]


class StateContainer(Generic[S]):
    """Base class for reactive state containers.

    Subclasses declare ``mutation_types`` (closed tuple of pydantic request
    models, each with a ``Literal`` discriminant) and implement
    ``_build_handlers()`` returning ``{action: bound_handler}``. Handlers
    publish with ``_next``/``_patch`` and notify with ``_emit``.
    """

    name: str = "store"
    discriminator: str = DEFAULT_DISCRIMINATOR
    mutation_types: tuple[type[BaseModel], ...] = ()

    def __init__(self, initial: S, name: str | None = None):
        if name is not None:
            self.name = name
        self._values: ValueStream[S] = ValueStream(initial, self.name)
        self._events = EventChannel(self.name)
        self._handlers: dict[str, Handler] = self._build_handlers()
        self._check_exhaustive()

    def _build_handlers(self) -> dict[str, Handler]:
        raise NotImplementedError

    # --- Read surface ----------------------------------------------------------

    def peek(self) -> S:
        """Current snapshot. Never blocks, never fails."""
        return self._values.peek()

    def observe(self) -> Stream[S]:
        """Current snapshot on subscribe, then every published one."""
        return self._values.observe()

    def observe_property(self, path: str) -> Stream[Any]:
        """Stream of the value at ``path``, emitted only when it changes.

        Raises InvalidPathError for malformed paths. Snapshots where the path
        does not resolve produce no emission.
        """
        segments = parse_path(path)
        return (
            self._values.observe()
            .map(lambda snapshot: resolve_path(snapshot, segments))
            .filter(lambda value: value is not MISSING)
            .distinct()
        )

    def listen(self, name: str) -> Stream[Any]:
        """Events emitted under ``name`` after subscription (no replay)."""
        return self._events.listen(name)

    @property
    def version(self) -> int:
        return self._values.version

    @property
    def actions(self) -> frozenset[str]:
        return frozenset(self._handlers)

    # --- Write surface ---------------------------------------------------------

    async def mutate(self, request: BaseModel | Mapping[str, Any]) -> None:
        """Validate ``request`` and run the one handler for its action."""
        request = self._coerce_request(request)
        action = getattr(request, self.discriminator)
        handler = self._handlers.get(action)
        if handler is None:
            raise UnknownMutationError(action, self.name)
        logger.info(
            f"Dispatching '{action}' on {self.name}",
            extra={"store": self.name, "action": action},
        )
        result = handler(request)
        if inspect.isawaitable(result):
            await result

    def _coerce_request(self, request: Any) -> BaseModel:
        if isinstance(request, BaseModel):
            if not isinstance(request, self.mutation_types):
                raise UnknownMutationError(
                    getattr(request, self.discriminator, None), self.name,
                )
            return request
        if not isinstance(request, Mapping):
            raise InvalidMutationError(
                f"Mutation request must be a model or mapping, "
                f"got {type(request).__name__}",
                self.name,
            )
        action = request.get(self.discriminator)
        if not isinstance(action, str) or action not in self._handlers:
            raise UnknownMutationError(action, self.name)
        try:
            return _request_adapter(
                self.mutation_types, self.discriminator,
            ).validate_python(dict(request))
        except ValidationError as e:
            raise InvalidMutationError(
                f"Invalid '{action}' request for store '{self.name}'",
                self.name,
                errors=e.errors(include_url=False, include_context=False),
            ) from e

    # --- Protected surface (handlers only) -------------------------------------

    def _next(self, snapshot: S) -> None:
        self._values.next(snapshot)

    def _patch(self, **changes: Any) -> S:
        """New snapshot: ``changes`` shallow-merged over peek()."""
        return merge_snapshot(self._values.peek(), changes)

    def _emit(self, name: str, payload: Any = None) -> None:
        self._events.emit(name, payload)

    # --- Lifecycle -------------------------------------------------------------

    def close(self) -> None:
        """Complete every subscription on this container."""
        self._values.close()
        self._events.close()
        logger.info(f"Closed store {self.name}", extra={"store": self.name})

    @property
    def closed(self) -> bool:
        return self._values.closed

    def _check_exhaustive(self) -> None:
        declared = declared_actions(self.mutation_types, self.discriminator)
        handled = set(self._handlers)
        if declared != handled:
            raise TypeError(
                f"{type(self).__name__} handlers do not match its mutation types: "
                f"unhandled={sorted(declared - handled)}, "
                f"undeclared={sorted(handled - declared)}",
            )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, version={self.version})"


def declared_actions(
    mutation_types: tuple[type[BaseModel], ...], discriminator: str,
) -> set[str]:
    """Collect the Literal values of ``discriminator`` across request models."""
    actions: set[str] = set()
    for model in mutation_types:
        field = model.model_fields.get(discriminator)
        if field is None:
            raise TypeError(
                f"{model.__name__} has no '{discriminator}' discriminant field",
            )
        literals = get_args(field.annotation)
        if not literals:
            raise TypeError(
                f"{model.__name__}.{discriminator} must be a Literal",
            )
        actions.update(literals)
    return actions


@lru_cache
def _request_adapter(
    mutation_types: tuple[type[BaseModel], ...], discriminator: str,
) -> TypeAdapter:
    if len(mutation_types) == 1:
        return TypeAdapter(mutation_types[0])
    return TypeAdapter(
        Annotated[Union[mutation_types], Field(discriminator=discriminator)],
    )
