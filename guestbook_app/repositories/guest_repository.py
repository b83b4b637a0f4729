"""Repository for the guest list ([{name, date}, ...])."""
import shutil
import threading
from typing import Dict, List

from .base import BaseRepository, CorruptFileError


class GuestRepository(BaseRepository):
    """Persists the whole guest list to a single JSON file.

    Schema::

        [
            {"name": "<str>", "date": "<ISO-8601 str>"},
            ...
        ]

    The file is the only source of truth: every operation re-reads it and
    mutating operations rewrite it in full.  Read-modify-write cycles are
    serialised by an instance lock, so share one repository per file.
    """

    def __init__(self, file_path: str = 'guests.json') -> None:
        super().__init__(file_path)
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Whole-file access
    # ------------------------------------------------------------------

    def read_all(self) -> List[Dict]:
        """Return every stored guest in arrival order.

        A missing file is created empty.  A file holding anything other than
        a JSON array is copied to ``<file>.corrupt`` and reset to ``[]``.
        """
        with self._lock:
            try:
                guests = self._read()
            except FileNotFoundError:
                self._log.info("%s not found, creating an empty guest list", self._path)
                self.write_all([])
                return []
            except CorruptFileError as exc:
                self._recover(f'invalid JSON ({exc})')
                return []

            if not isinstance(guests, list):
                self._recover('top-level value is not an array')
                return []
            return guests

    def write_all(self, guests: List[Dict]) -> None:
        """Replace the stored list with *guests*."""
        with self._lock:
            self._save(list(guests))

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def add(self, guest: Dict) -> None:
        """Append *guest* to the list and persist."""
        with self._lock:
            guests = self.read_all()
            guests.append(guest)
            self.write_all(guests)

    def remove(self, name: str) -> int:
        """Remove every guest called exactly *name*.  Returns how many went."""
        with self._lock:
            guests = self.read_all()
            kept = [g for g in guests
                    if not (isinstance(g, dict) and g.get('name') == name)]
            removed = len(guests) - len(kept)
            if removed:
                self.write_all(kept)
            return removed

    def clear(self) -> None:
        """Empty the guest list."""
        self.write_all([])

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _recover(self, reason: str) -> None:
        backup = self._path + '.corrupt'
        self._log.warning("Could not parse %s: %s; backing it up to %s and starting fresh",
                          self._path, reason, backup)
        try:
            shutil.copyfile(self._path, backup)
        except OSError as exc:
            self._log.error("Could not back up %s: %s", self._path, exc)
        self.write_all([])
