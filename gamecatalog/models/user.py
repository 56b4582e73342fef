"""
Model: User
"""

from flask_login import UserMixin

from gamecatalog.db import db


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.String, primary_key=True)
    nick = db.Column(db.String(100), unique=True, nullable=False)
    email = db.Column(db.String(255), unique=True)
    is_admin = db.Column(db.Boolean, default=False)

    def has_admin_access(self):
        return bool(self.is_admin)

    def has_access(self, access):
        if access == "admin":
            return self.has_admin_access()
        elif access == "user":
            return True
        return False
