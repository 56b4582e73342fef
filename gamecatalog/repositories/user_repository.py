"""
Repository for User database operations
"""

from sqlalchemy.exc import SQLAlchemyError

from gamecatalog.db import db
from gamecatalog.models.user import User


class UserRepository:
    """Repository for User database operations"""

    @staticmethod
    def get_by_id(id):
        """Get User by primary key ID"""
        return db.session.get(User, id)

    @staticmethod
    def create(**kwargs):
        """Create new User record"""
        try:
            item = User(**kwargs)
            db.session.add(item)
            db.session.commit()
            db.session.refresh(item)
            return item
        except SQLAlchemyError as e:
            db.session.rollback()
            raise e
