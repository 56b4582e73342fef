"""
Model: Game
"""

import enum

from gamecatalog.db import db


class Console(str, enum.Enum):
    PS1 = "PS1"
    PS2 = "PS2"
    PSP = "PSP"
    NA = "NA"


class Region(str, enum.Enum):
    PAL = "PAL"
    NTSC = "NTSC"
    NTSCJ = "NTSCJ"
    NA = "NA"


class GameKind(str, enum.Enum):
    LEAF = "LEAF"
    AGGREGATE = "AGGREGATE"


class Game(db.Model):
    __tablename__ = "game"

    id = db.Column(db.String, primary_key=True)
    title = db.Column(db.String, nullable=False)
    # Stored as plain strings so raw statements can compare against literals
    console = db.Column(db.Enum(Console, native_enum=False, values_callable=lambda e: [m.value for m in e]), nullable=False)
    region = db.Column(db.Enum(Region, native_enum=False, values_callable=lambda e: [m.value for m in e]), nullable=False)
    kind = db.Column(
        db.Enum(GameKind, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=GameKind.LEAF,
    )
    parent_id = db.Column(db.String, db.ForeignKey("game.id"), nullable=True, index=True)
    additional_info = db.Column(db.Text)

    subgames = db.relationship("Game", backref=db.backref("parent", remote_side=[id]), lazy="select")

    @property
    def is_aggregate(self):
        return self.kind == GameKind.AGGREGATE

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "console": self.console.value,
            "region": self.region.value,
            "kind": self.kind.value,
            "parent_id": self.parent_id,
            "additional_info": self.additional_info,
        }
