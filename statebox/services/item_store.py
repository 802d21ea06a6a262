"""Item Store — state container for a list of items backed by an ItemRepository.

Invariants:
    - Every handler path ends in exactly one final _next() (list also publishes
      a loading snapshot first, and clears it again when cancelled)
    - Repository failures are folded into `error` over the previous snapshot;
      every unrelated field survives and mutate() does not raise
    - Events fire only after the snapshot that reflects them is published
    - Unknown actions raise UnknownMutationError (policy of StateContainer)

Design Decisions:
    - Explicit action->handler dict: adding an action requires editing it and
      the mutation union together (construction fails otherwise)
    - Failure snapshots patch over peek() at failure time, not over the
      snapshot seen when the handler started: state published meanwhile by
      other requests is preserved
    - Any Exception from the repository counts as a data-source failure; the
      repository is a black box to the container
"""

import asyncio
import logging

from statebox.core.domain_types import (
    ITEM_CREATED, ITEM_DELETED, ITEM_RENAMED, ItemId,
)
from statebox.core.item_state import ItemListState
from statebox.core.repository_protocols import ItemRepository
from statebox.core.state_container import Handler, StateContainer
from statebox.schemas.item_mutations import (
    ITEM_MUTATION_TYPES, CreateItem, DeleteItem, ListItems, RenameItem, SelectItem,
)

logger = logging.getLogger(__name__)


class ItemStore(StateContainer[ItemListState]):
    """Owns an ItemListState; the only writer of it."""

    name = "items"
    mutation_types = ITEM_MUTATION_TYPES

    def __init__(
        self,
        repository: ItemRepository,
        initial: ItemListState | None = None,
        name: str | None = None,
    ):
        self._repository = repository
        super().__init__(initial if initial is not None else ItemListState(), name)

    def _build_handlers(self) -> dict[str, Handler]:
        return {
            "list": self._handle_list,
            "create": self._handle_create,
            "rename": self._handle_rename,
            "delete": self._handle_delete,
            "select": self._handle_select,
        }

    async def _handle_list(self, request: ListItems) -> None:
        self._next(self._patch(loading=True, error=None))
        try:
            items = await self._repository.list_items()
        except asyncio.CancelledError:
            self._next(self._patch(loading=False))
            raise
        except Exception as e:
            self._fail(request.action, e, loading=False)
            return
        self._next(self._patch(loading=False, error=None, data=tuple(items)))

    async def _handle_create(self, request: CreateItem) -> None:
        try:
            item = await self._repository.create_item(request.name)
        except Exception as e:
            self._fail(request.action, e)
            return
        data = self.peek().data + (item,)
        self._next(self._patch(data=data))
        self._emit(ITEM_CREATED, item)

    async def _handle_rename(self, request: RenameItem) -> None:
        uuid = ItemId(request.uuid)
        try:
            item = await self._repository.rename_item(uuid, request.name)
        except Exception as e:
            self._fail(request.action, e)
            return
        data = tuple(item if row.uuid == uuid else row for row in self.peek().data)
        self._next(self._patch(data=data))
        self._emit(ITEM_RENAMED, item)

    async def _handle_delete(self, request: DeleteItem) -> None:
        uuid = ItemId(request.uuid)
        try:
            await self._repository.delete_item(uuid)
        except Exception as e:
            self._fail(request.action, e)
            return
        data = tuple(row for row in self.peek().data if row.uuid != uuid)
        self._next(self._patch(data=data))
        self._emit(ITEM_DELETED, uuid)

    def _handle_select(self, request: SelectItem) -> None:
        uuid = ItemId(request.uuid) if request.uuid is not None else None
        self._next(self._patch(selected=uuid))

    def _fail(self, action: str, exc: Exception, **changes) -> None:
        logger.warning(
            f"'{action}' failed on {self.name}: {exc}",
            extra={
                "store": self.name, "action": action,
                "error_code": getattr(exc, "code", None),
            },
        )
        self._next(self._patch(error=_error_message(exc), **changes))


def _error_message(exc: Exception) -> str:
    message = getattr(exc, "message", None) or str(exc)
    return message or type(exc).__name__
