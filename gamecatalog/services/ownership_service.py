"""Per-user library membership"""

import structlog

from gamecatalog.exceptions import NotFoundException
from gamecatalog.repositories.game_repository import GameRepository
from gamecatalog.repositories.library_repository import LibraryRepository
from gamecatalog.repositories.user_repository import UserRepository

logger = structlog.get_logger("ownership")


class OwnershipService:
    @staticmethod
    def mark_ownership(user_id, game_id, owned=True):
        """Add or remove *game_id* from the user's library.

        Idempotent; returns True if the library changed.
        """
        if UserRepository.get_by_id(user_id) is None:
            raise NotFoundException(f"User with ID '{user_id}' not found")
        if GameRepository.get_by_id(game_id) is None:
            raise NotFoundException(f"Game with ID '{game_id}' not found")

        if owned:
            changed = LibraryRepository.add(user_id, game_id)
        else:
            changed = LibraryRepository.remove(user_id, game_id)
        if changed:
            logger.info(f"User {user_id} {'added' if owned else 'removed'} {game_id}")
        return changed

    @staticmethod
    def owned_ids(user_id):
        return LibraryRepository.get_owned_ids(user_id)
