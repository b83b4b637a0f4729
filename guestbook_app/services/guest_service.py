"""Business logic for the guest list."""
import datetime
import re
from typing import Any, Dict, List

from ..repositories.guest_repository import GuestRepository


MAX_NAME_LENGTH = 50

NAME_PATTERN = re.compile(r'^[a-zA-Z0-9ąćęłńóśźżĄĆĘŁŃÓŚŹŻ\s\-]+$')


class GuestValidationError(ValueError):
    """A submitted name was rejected.  ``str(exc)`` is shown to the visitor."""


def utc_timestamp() -> str:
    """Current UTC time as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class GuestService:
    """Validates names and applies guest-list operations, delegating
    persistence to :class:`~guestbook_app.repositories.guest_repository.GuestRepository`.

    Rules
    -----
    * ``name`` is required, trimmed, at most **50** characters and limited to
      letters (including Polish diacritics), digits, whitespace and hyphens.
    * Duplicate names are allowed; :meth:`remove` deletes every exact match.
    """

    def __init__(self, repository: GuestRepository) -> None:
        self._repo = repository

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def validate_name(raw: Any) -> str:
        """Return the trimmed *raw* name.

        Raises:
            GuestValidationError: If the name is missing, empty, too long or
                contains characters outside the allowed set.
        """
        if not raw or not isinstance(raw, str):
            raise GuestValidationError('Pole "name" jest wymagane')

        name = raw.strip()
        if not name:
            raise GuestValidationError('Pole "name" nie może być puste')
        if len(name) > MAX_NAME_LENGTH:
            raise GuestValidationError(
                f'Imię nie może być dłuższe niż {MAX_NAME_LENGTH} znaków')
        if not NAME_PATTERN.match(name):
            raise GuestValidationError('Imię zawiera niedozwolone znaki specjalne')
        return name

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(self, raw_name: Any) -> Dict[str, str]:
        """Validate *raw_name*, stamp it with the current time and store it.

        Returns:
            The stored guest dict.
        """
        guest = {'name': self.validate_name(raw_name), 'date': utc_timestamp()}
        self._repo.add(guest)
        return guest

    def list(self) -> List[Dict]:
        """Return all guests in arrival order."""
        return self._repo.read_all()

    def remove(self, raw_name: Any) -> int:
        """Remove every guest named exactly like *raw_name* (after trimming).

        Returns:
            Number of guests removed; ``0`` means no such guest.
        """
        return self._repo.remove(self.validate_name(raw_name))

    def clear(self) -> None:
        """Empty the guest list."""
        self._repo.clear()
