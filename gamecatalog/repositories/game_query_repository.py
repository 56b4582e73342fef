"""
Repository running the query engine's statements on the Flask-SQLAlchemy session
"""

import time

import structlog

from gamecatalog.db import db
from gamecatalog.queries.assembler import create_lookup_query

logger = structlog.get_logger("main")


class GameQueryRepository:
    """Storage side of the catalog query engine.

    Every method executes one parameterized statement and returns plain dicts.
    Database errors are logged and re-raised unchanged.
    """

    @staticmethod
    def _execute(bound, label):
        start = time.time()
        try:
            result = db.session.execute(bound.statement(), bound.params)
            rows = [dict(row) for row in result.mappings()]
        except Exception as e:
            duration = (time.time() - start) * 1000.0
            logger.error(f"GameQueryRepository.{label} failed: duration_ms={duration:.1f} error={e}")
            raise

        duration = (time.time() - start) * 1000.0
        logger.debug(f"GameQueryRepository.{label}: rows={len(rows)} duration_ms={duration:.1f}")
        for row in rows:
            if "owned" in row:
                row["owned"] = bool(row["owned"])
        return rows

    @staticmethod
    def run_parent_query(queries, limit, offset, user_id=None):
        """Top-level rows (standalone leaves and aggregates) for one page window"""
        bound = queries.bind_parents(limit, offset, user_id)
        return GameQueryRepository._execute(bound, "run_parent_query")

    @staticmethod
    def run_child_query(queries, parent_ids, user_id=None):
        """Every child of the given parents, whatever the active filters"""
        if not parent_ids:
            return []
        bound = queries.bind_children(parent_ids, user_id)
        return GameQueryRepository._execute(bound, "run_child_query")

    @staticmethod
    def lookup_rows_by_id(ids, user_id=None):
        if not ids:
            return []
        return GameQueryRepository._execute(create_lookup_query(ids, user_id), "lookup_rows_by_id")
