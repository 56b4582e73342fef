"""
Repository for Game database operations
"""

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from gamecatalog.db import db
from gamecatalog.models.game import Game, GameKind


class GameRepository:
    """Repository for Game database operations"""

    @staticmethod
    def get_all():
        """Get all Game records"""
        return Game.query.order_by(Game.id).all()

    @staticmethod
    def get_by_id(id):
        """Get Game by primary key ID"""
        return db.session.get(Game, id)

    @staticmethod
    def get_by_ids(ids):
        if not ids:
            return []
        return Game.query.filter(Game.id.in_(list(ids))).all()

    @staticmethod
    def existing_ids(ids):
        if not ids:
            return set()
        return {row[0] for row in db.session.query(Game.id).filter(Game.id.in_(list(ids))).all()}

    @staticmethod
    def get_children(parent_id):
        return Game.query.filter(Game.parent_id == parent_id).order_by(Game.id).all()

    @staticmethod
    def count_children(parent_id):
        return db.session.query(func.count(Game.id)).filter(Game.parent_id == parent_id).scalar() or 0

    @staticmethod
    def get_aggregates():
        return Game.query.filter(Game.kind == GameKind.AGGREGATE).all()

    @staticmethod
    def create(**kwargs):
        """Create new Game record"""
        try:
            item = Game(**kwargs)
            db.session.add(item)
            db.session.commit()
            db.session.refresh(item)
            return item
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def create_many(rows):
        """Insert a batch of Game records in one transaction"""
        try:
            items = [Game(**row) for row in rows]
            db.session.add_all(items)
            db.session.commit()
            return items
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e
