"""Repository package — expose all concrete repositories from one import."""
from .base import BaseRepository, CorruptFileError, GuestStoreError
from .guest_repository import GuestRepository

__all__ = [
    'BaseRepository',
    'CorruptFileError',
    'GuestRepository',
    'GuestStoreError',
]
