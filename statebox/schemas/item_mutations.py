"""Item Mutations — closed set of change requests accepted by ItemStore.

Invariants:
    - `action` is the discriminant; each model pins it with a Literal
    - Names are stripped and must be non-empty after stripping
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from statebox.core.domain_types import MAX_ITEM_NAME_LENGTH


class _ItemMutation(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class ListItems(_ItemMutation):
    """Reload the whole list from the data source."""
    action: Literal["list"] = "list"


class CreateItem(_ItemMutation):
    action: Literal["create"] = "create"
    name: str = Field(min_length=1, max_length=MAX_ITEM_NAME_LENGTH)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class RenameItem(_ItemMutation):
    action: Literal["rename"] = "rename"
    uuid: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=MAX_ITEM_NAME_LENGTH)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class DeleteItem(_ItemMutation):
    action: Literal["delete"] = "delete"
    uuid: str = Field(min_length=1)


class SelectItem(_ItemMutation):
    """Mark one row as selected (None clears). Local only, no IO."""
    action: Literal["select"] = "select"
    uuid: str | None = None


ITEM_MUTATION_TYPES = (ListItems, CreateItem, RenameItem, DeleteItem, SelectItem)
