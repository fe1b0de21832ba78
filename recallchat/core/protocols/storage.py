"""Key/value storage protocol for dependency injection."""
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class KeyValueStorageProtocol(Protocol):
    """Dumb key/value surface holding UTF-8 text values.

    No transactions: every write replaces the whole value.
    """

    def get(self, key: str) -> Optional[str]:
        """Get value for key, or None if absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Overwrite value for key."""
        ...

    def delete(self, key: str) -> None:
        """Remove key if present."""
        ...
