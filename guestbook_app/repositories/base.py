"""Repository base class used by all concrete repositories."""
import json
import logging
import os
import shutil
import tempfile
from typing import Any


class GuestStoreError(IOError):
    """Raised when the backing file cannot be read or written."""


class CorruptFileError(ValueError):
    """Raised by :meth:`BaseRepository._read` when the file is not valid JSON."""


class BaseRepository:
    """Provides JSON-backed persistence for a single data file.

    Unlike an in-memory cache, every call to :meth:`_read` goes back to disk,
    so several processes (or an operator editing the file by hand) always see
    the current content.  :meth:`_save` writes to a sibling temp file and
    renames it over the target so the file is never left partially written.
    """

    def __init__(self, file_path: str) -> None:
        self._path = file_path
        self._log = logging.getLogger(f'guestbook.repository.{type(self).__name__}')

    @property
    def filename(self) -> str:
        return os.path.basename(self._path)

    def _read(self) -> Any:
        """Return the decoded JSON content of *self._path*.

        Raises:
            FileNotFoundError: The file does not exist.
            CorruptFileError: The file exists but does not hold valid JSON.
            GuestStoreError: Any other OS-level failure (e.g. permissions).
        """
        try:
            with open(self._path, 'r', encoding='utf-8') as fh:
                raw = fh.read()
        except FileNotFoundError:
            raise
        except PermissionError as exc:
            raise GuestStoreError(f'Brak uprawnień do odczytu pliku {self.filename}') from exc
        except OSError as exc:
            raise GuestStoreError(str(exc)) from exc

        try:
            return json.loads(raw)
        except ValueError as exc:
            raise CorruptFileError(str(exc)) from exc

    def _save(self, data: Any) -> None:
        """Atomically write *data* as JSON to *self._path*.

        An existing file keeps its permission bits, and a file the process
        may not write to is refused rather than replaced by the rename.
        """
        dir_name = os.path.dirname(os.path.abspath(self._path))
        existing = os.path.exists(self._path)
        if existing and not os.access(self._path, os.W_OK):
            raise GuestStoreError(f'Brak uprawnień do zapisu pliku {self.filename}')
        try:
            fd, tmp_path = tempfile.mkstemp(dir=dir_name, suffix='.tmp')
        except PermissionError as exc:
            raise GuestStoreError(f'Brak uprawnień do zapisu pliku {self.filename}') from exc
        except OSError as exc:
            raise GuestStoreError(str(exc)) from exc
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as fh:
                json.dump(data, fh, indent=2, ensure_ascii=False)
            if existing:
                shutil.copymode(self._path, tmp_path)
            os.replace(tmp_path, self._path)
        except Exception as exc:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            if isinstance(exc, PermissionError):
                raise GuestStoreError(f'Brak uprawnień do zapisu pliku {self.filename}') from exc
            if isinstance(exc, OSError):
                raise GuestStoreError(str(exc)) from exc
            raise
