from __future__ import annotations

from typing import Any, Mapping

from pydantic import JsonValue, RootModel


class StoreSnapshot(RootModel[dict[str, list[dict[str, JsonValue]]]]):
    """
    Mirrors the on-disk file schema exactly:
      {
        "<collection>": [ { "_id": "...", ...fields }, ... ],
        ...
      }
    """

    @classmethod
    def from_disk_doc(cls, doc: Mapping[str, Any]) -> "StoreSnapshot":
        return cls.model_validate(doc)

    @classmethod
    def from_collections(cls, collections: Mapping[str, list[dict[str, Any]]]) -> "StoreSnapshot":
        return cls.model_validate(dict(collections))

    def to_disk_doc(self) -> dict[str, Any]:
        # mode="json" rebuilds every nested container, so the result shares
        # nothing with live documents.
        return self.model_dump(mode="json")

    @property
    def collections(self) -> dict[str, list[dict[str, Any]]]:
        return self.root
