import logging

from flask_sqlalchemy import SQLAlchemy

# Retrieve main logger
logger = logging.getLogger("main")

db = SQLAlchemy()


def init_db(app):
    """Bind the SQLAlchemy extension and make sure the tables exist."""
    db.init_app(app)
    # Register models on the metadata before create_all
    from gamecatalog import models  # noqa: F401

    with app.app_context():
        db.create_all()
        logger.info(f"Database ready at {app.config['SQLALCHEMY_DATABASE_URI']}")
