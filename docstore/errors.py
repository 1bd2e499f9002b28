from __future__ import annotations


class DocumentStoreError(Exception):
    """Base class for every error raised by docstore."""


class InvalidArgumentError(DocumentStoreError, ValueError):
    """Malformed constructor, collection-name or query-builder argument."""


class DuplicateCollectionError(DocumentStoreError):
    """A collection with this name already exists."""


class UnknownCollectionError(DocumentStoreError, KeyError):
    """No collection with this name exists."""

    def __str__(self) -> str:
        # KeyError.__str__ reprs the argument; keep the plain message.
        return str(self.args[0]) if self.args else ""


class InvalidDocumentError(DocumentStoreError, TypeError):
    """Insert/update payload is not a JSON object."""


class PersistenceError(DocumentStoreError, OSError):
    """Serializing or writing the backing file failed."""
