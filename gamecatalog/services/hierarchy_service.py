"""Grouping of leaf games under aggregates.

The catalog is exactly two levels deep: an aggregate groups two or more
leaves, and a leaf points at most at one aggregate. Every mutation here ends
with :func:`cleanup_orphans` on each aggregate it touched, so an aggregate
left with one child or none is deleted and the remaining child detached.
"""

import structlog
from sqlalchemy.exc import SQLAlchemyError

from gamecatalog.db import db
from gamecatalog.exceptions import HierarchyError, NotFoundException
from gamecatalog.models.game import Console, Game, GameKind, Region
from gamecatalog.repositories.game_repository import GameRepository
from gamecatalog.repositories.library_repository import LibraryRepository
from gamecatalog.utils import aggregate_id_for

logger = structlog.get_logger("hierarchy")


def _unique(ids):
    seen = []
    for game_id in ids:
        if game_id not in seen:
            seen.append(game_id)
    return seen


def _load_games(ids):
    games = {g.id: g for g in GameRepository.get_by_ids(ids)}
    missing = [game_id for game_id in ids if game_id not in games]
    if missing:
        raise NotFoundException(f"Unknown game id(s): {', '.join(missing)}")
    return [games[game_id] for game_id in ids]


def _require_leaf(game):
    if game.is_aggregate:
        raise HierarchyError(f"{game.id} is an aggregate and cannot be nested")


def cleanup_orphans(aggregate_id):
    """Delete *aggregate_id* if it has fewer than two children.

    The caller owns the transaction. Returns True when the aggregate was removed.
    """
    aggregate = GameRepository.get_by_id(aggregate_id)
    if aggregate is None or not aggregate.is_aggregate:
        return False

    children = GameRepository.get_children(aggregate_id)
    if len(children) > 1:
        return False

    for child in children:
        child.parent_id = None
    db.session.flush()
    LibraryRepository.delete_for_games([aggregate_id])
    db.session.delete(aggregate)
    db.session.flush()
    logger.info(f"Removed aggregate {aggregate_id} left with {len(children)} child(ren)")
    return True


def _commit(affected_parents):
    try:
        for parent_id in affected_parents:
            if parent_id:
                cleanup_orphans(parent_id)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise


class HierarchyService:
    @staticmethod
    def group(game_ids, title, aggregate_id=None, additional_info=None):
        """Create an aggregate over two or more leaves.

        Leaves that already belong to another aggregate are moved; their old
        aggregate is cleaned up afterwards.
        """
        ids = _unique(game_ids)
        if len(ids) < 2:
            raise HierarchyError("A group needs at least two games")
        if not title:
            raise HierarchyError("A group needs a title")

        games = _load_games(ids)
        for game in games:
            _require_leaf(game)

        aggregate_id = aggregate_id or aggregate_id_for(ids[0])
        if GameRepository.get_by_id(aggregate_id) is not None:
            raise HierarchyError(f"Game with id {aggregate_id} already exists")

        previous = {g.parent_id for g in games if g.parent_id}
        try:
            aggregate = Game(
                id=aggregate_id,
                title=title,
                console=Console.NA,
                region=Region.NA,
                kind=GameKind.AGGREGATE,
                additional_info=additional_info,
            )
            db.session.add(aggregate)
            db.session.flush()
            for game in games:
                game.parent_id = aggregate_id
            db.session.flush()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        _commit(previous)
        logger.info(f"Grouped {len(ids)} games under {aggregate_id}")
        return aggregate

    @staticmethod
    def reparent(game_id, parent_id):
        """Move a leaf under an existing aggregate"""
        game, parent = _load_games([game_id, parent_id])
        _require_leaf(game)
        if not parent.is_aggregate:
            raise HierarchyError(f"{parent_id} is not an aggregate")

        previous = game.parent_id
        if previous == parent_id:
            return game
        game.parent_id = parent_id
        db.session.flush()
        _commit([previous])
        logger.info(f"Moved {game_id} from {previous} to {parent_id}")
        return game

    @staticmethod
    def remove_from_group(game_id):
        """Detach a leaf from its aggregate"""
        (game,) = _load_games([game_id])
        if game.parent_id is None:
            raise HierarchyError(f"{game_id} is not part of a group")

        previous = game.parent_id
        game.parent_id = None
        db.session.flush()
        _commit([previous])
        logger.info(f"Removed {game_id} from {previous}")
        return game

    @staticmethod
    def remove_games(game_ids):
        """Delete games. Children of a deleted aggregate become standalone."""
        ids = _unique(game_ids)
        games = _load_games(ids)
        removed = set(ids)

        affected = set()
        try:
            for game in games:
                if game.is_aggregate:
                    for child in GameRepository.get_children(game.id):
                        child.parent_id = None
                elif game.parent_id and game.parent_id not in removed:
                    affected.add(game.parent_id)
            db.session.flush()
            LibraryRepository.delete_for_games(ids)
            for game in games:
                db.session.delete(game)
            db.session.flush()
        except SQLAlchemyError:
            db.session.rollback()
            raise
        _commit(sorted(affected))
        logger.info(f"Removed {len(ids)} game(s)")
        return len(ids)

    @staticmethod
    def cleanup_all():
        """Sweep every aggregate; returns the ids that were removed"""
        removed = [a.id for a in GameRepository.get_aggregates() if GameRepository.count_children(a.id) <= 1]
        _commit(removed)
        return removed
