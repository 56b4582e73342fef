"""
Model: Library (ownership association between a user and a game)
"""

from gamecatalog.db import db


class Library(db.Model):
    __tablename__ = "library"

    user_id = db.Column(db.String, db.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    game_id = db.Column(db.String, db.ForeignKey("game.id", ondelete="CASCADE"), primary_key=True, index=True)
