"""
Repository for Library (ownership) database operations
"""

from sqlalchemy.exc import SQLAlchemyError

from gamecatalog.db import db
from gamecatalog.models.library import Library


class LibraryRepository:
    """Repository for ownership records"""

    @staticmethod
    def is_owned(user_id, game_id):
        return db.session.get(Library, (user_id, game_id)) is not None

    @staticmethod
    def get_owned_ids(user_id):
        return [row.game_id for row in Library.query.filter_by(user_id=user_id).order_by(Library.game_id).all()]

    @staticmethod
    def add(user_id, game_id):
        """Insert an ownership record. Returns False if it already existed."""
        if db.session.get(Library, (user_id, game_id)) is not None:
            return False
        try:
            db.session.add(Library(user_id=user_id, game_id=game_id))
            db.session.commit()
            return True
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e

    @staticmethod
    def remove(user_id, game_id):
        """Delete an ownership record. Returns False if there was none."""
        item = db.session.get(Library, (user_id, game_id))
        if not item:
            return False
        db.session.delete(item)
        db.session.commit()
        return True

    @staticmethod
    def delete_for_games(game_ids):
        """Drop every user's ownership of the given games; caller commits"""
        if not game_ids:
            return 0
        return Library.query.filter(Library.game_id.in_(list(game_ids))).delete(synchronize_session=False)
