"""File storage abstraction layer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import IO


class AbstractStorage(ABC):
    """Interface for backends that hold uploaded files."""

    @abstractmethod
    def save(self, file_obj: IO[bytes], filename: str) -> str:
        """Persist a file and return the name it is stored under."""

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Return whether a stored file with this name exists."""

    @abstractmethod
    def delete(self, name: str) -> bool:
        """Remove a stored file. Return False if there was nothing to remove."""
