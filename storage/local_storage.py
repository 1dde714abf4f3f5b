"""Local filesystem storage for uploaded files."""

from __future__ import annotations

import os
import uuid
from pathlib import Path
from typing import IO

from werkzeug.security import safe_join
from werkzeug.utils import secure_filename

from .abstract_storage import AbstractStorage


class LocalStorage(AbstractStorage):
    """Keep uploads as flat files inside a single directory."""

    def __init__(self, upload_dir: str):
        self.base_directory = Path(upload_dir).resolve()
        os.makedirs(self.base_directory, exist_ok=True)

    @staticmethod
    def unique_name(original: str) -> str:
        """Return a random file name that keeps the original extension."""

        suffix = Path(secure_filename(original)).suffix.lower()
        return f"{uuid.uuid4().hex}{suffix}"

    def _resolve(self, name: str) -> Path | None:
        joined = safe_join(str(self.base_directory), name)
        return Path(joined) if joined else None

    def save(self, file_obj: IO[bytes], filename: str) -> str:
        safe_name = secure_filename(filename)
        if not safe_name:
            raise ValueError("Filename must contain at least one valid character.")

        destination = self.base_directory / safe_name
        if hasattr(file_obj, "save"):
            file_obj.save(destination)  # type: ignore[arg-type]
        else:
            with open(destination, "wb") as output:
                output.write(file_obj.read())
        return safe_name

    def exists(self, name: str) -> bool:
        path = self._resolve(name)
        return path is not None and path.is_file()

    def delete(self, name: str) -> bool:
        if not self.exists(name):
            return False
        self._resolve(name).unlink()
        return True
