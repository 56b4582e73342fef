"""
Pytest fixtures and configuration for GameCatalog tests
"""
import pytest

from gamecatalog.app import create_app
from gamecatalog.db import db
from gamecatalog.models import Console, Game, GameKind, Region
from gamecatalog.repositories.library_repository import LibraryRepository
from gamecatalog.repositories.user_repository import UserRepository

TEST_CONFIG = {
    "database": {"url": "sqlite:///:memory:"},
    "logging": {"level": "WARNING"},
    "flask": {"TESTING": True, "SESSION_PROTECTION": None, "SECRET_KEY": "test-secret-key"},
}


class CatalogSeeder:
    """Inserts games, groups and ownership rows straight into the session"""

    def leaf(self, game_id, title, console="PS2", region="PAL", parent_id=None, additional_info=None):
        game = Game(
            id=game_id,
            title=title,
            console=Console(console),
            region=Region(region),
            kind=GameKind.LEAF,
            parent_id=parent_id,
            additional_info=additional_info,
        )
        db.session.add(game)
        db.session.commit()
        return game

    def aggregate(self, game_id, title, children=()):
        aggregate = Game(id=game_id, title=title, console=Console.NA, region=Region.NA, kind=GameKind.AGGREGATE)
        db.session.add(aggregate)
        db.session.flush()
        for child_id in children:
            db.session.get(Game, child_id).parent_id = game_id
        db.session.commit()
        return aggregate

    def user(self, user_id, admin=False):
        return UserRepository.create(id=user_id, nick=user_id, email=f"{user_id}@example.com", is_admin=admin)

    def own(self, user_id, *game_ids):
        for game_id in game_ids:
            LibraryRepository.add(user_id, game_id)


@pytest.fixture
def app():
    """Application bound to a fresh in-memory database"""
    _app = create_app(TEST_CONFIG)
    with _app.app_context():
        yield _app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def catalog(app):
    return CatalogSeeder()


@pytest.fixture
def users(catalog):
    """A regular user and an admin"""
    return {
        "alice": catalog.user("alice"),
        "admin": catalog.user("admin", admin=True),
    }


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


def _login(client, user_id):
    with client.session_transaction() as sess:
        sess["_user_id"] = user_id
    return client


@pytest.fixture
def user_client(client, users):
    return _login(client, "alice")


@pytest.fixture
def admin_client(client, users):
    return _login(client, "admin")


@pytest.fixture
def ps2_catalog(catalog):
    """Three PS2 leaves and one PS1 leaf, no groups"""
    catalog.leaf("SLES-00003", "C", console="PS2")
    catalog.leaf("SLES-00001", "A", console="PS2")
    catalog.leaf("SLES-00002", "B", console="PS2")
    catalog.leaf("SLUS-00001", "D", console="PS1", region="NTSC")
    return catalog


@pytest.fixture
def grouped_catalog(catalog):
    """Three standalone leaves and two aggregates with two children each"""
    catalog.leaf("SLES-10001", "Ape Escape", console="PS1")
    catalog.leaf("SLES-10002", "Bust a Groove", console="PS1")
    catalog.leaf("SLES-10003", "Crash Team Racing", console="PS1")
    catalog.leaf("SLUS-20001", "Final Saga (Disc 1)", console="PS1", region="NTSC")
    catalog.leaf("SLUS-20002", "Final Saga (Disc 2)", console="PS1", region="NTSC")
    catalog.aggregate("SLUS-20001_agg", "Final Saga", children=["SLUS-20001", "SLUS-20002"])
    catalog.leaf("SCES-30001", "Dino Quest", console="PS2", region="PAL")
    catalog.leaf("SCUS-30001", "Dino Quest", console="PS2", region="NTSC")
    catalog.aggregate("SCES-30001_agg", "Dino Quest", children=["SCES-30001", "SCUS-30001"])
    return catalog


@pytest.fixture
def sample_import():
    """Import file covering every warning the parser emits"""
    return [
        {"id": "SLUS-00001", "title": "Alpha", "region": "ntscu"},
        {"id": "SLES-00002", "name": "Beta", "region": "pal"},
        {"id": "SCES-00003", "region": "pal"},
        {"title": "Gamma", "region": "pal"},
        {"id": "SLUS-00004", "title": "Delta", "region": "usa"},
        {"id": "SLUS-00005/SLUS-00006", "title": "Epsilon", "region": "ntsc"},
        {"id": "SLUS-00001", "title": "Alpha again", "region": "ntsc"},
    ]
