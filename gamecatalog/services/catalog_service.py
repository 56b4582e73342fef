"""Catalog maintenance: single add, JSON import and export.

The importer accepts the community list format::

    [{"id": "SLUS-00001", "title": "...", "region": "ntsc", "console": "PS1"}, ...]

``name`` is accepted in place of ``title``; ``console`` falls back to the
console picked for the whole file. Records that cannot be imported are
reported as warnings instead of failing the file.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import structlog

from gamecatalog.constants import AGGREGATE_SUFFIX, CONSOLES, REGION_ALIASES, REGIONS
from gamecatalog.exceptions import HierarchyError, ValidationException
from gamecatalog.models.game import Console, GameKind, Region
from gamecatalog.repositories.game_repository import GameRepository
from gamecatalog.services.hierarchy_service import HierarchyService
from gamecatalog.utils import is_safe_id

logger = structlog.get_logger("catalog")


@dataclass
class ImportWarning:
    key: str
    message: str
    data: Dict[str, Any]

    def to_dict(self):
        return {"key": self.key, "message": self.message, "data": self.data}


@dataclass
class ImportResult:
    games: List[Dict[str, Any]] = field(default_factory=list)
    warnings: List[ImportWarning] = field(default_factory=list)

    def to_dict(self):
        return {"games": self.games, "warnings": [w.to_dict() for w in self.warnings]}


def _is_aggregate_id(game_id):
    return game_id.endswith(AGGREGATE_SUFFIX)


def _text(data, *keys, required=None):
    """First present key as a stripped string; ``required`` names the error when empty"""
    value = None
    for key in keys:
        if data.get(key) is not None:
            value = data[key]
            break
    if value is not None and not isinstance(value, str):
        raise ValidationException(f"{keys[0]} must be a string")
    value = (value or "").strip()
    if required and not value:
        raise ValidationException(required)
    return value or None


def validate_game(data):
    """Normalize one admin-supplied game record or raise ValidationException"""
    if not isinstance(data, dict):
        raise ValidationException("Game must be an object")

    game_id = _text(data, "id", required="Record with no ID")
    title = _text(data, "title", required="Record with no title")

    parent_id = _text(data, "parent_id", "parentID")
    if _is_aggregate_id(game_id):
        if parent_id:
            raise ValidationException(f"Aggregate {game_id} cannot have a parent")
        return {
            "id": game_id,
            "title": title,
            "console": Console.NA,
            "region": Region.NA,
            "kind": GameKind.AGGREGATE,
            "parent_id": None,
            "additional_info": data.get("additional_info", data.get("additionalInfo")),
        }

    if not is_safe_id(game_id):
        raise ValidationException(f"Invalid ID: {game_id}")
    console = data.get("console")
    region = data.get("region")
    if console not in CONSOLES:
        raise ValidationException(f"Invalid console: {console}")
    if region not in REGIONS:
        raise ValidationException(f"Invalid region: {region}")

    return {
        "id": game_id,
        "title": title,
        "console": Console(console),
        "region": Region(region),
        "kind": GameKind.LEAF,
        "parent_id": parent_id or None,
        "additional_info": data.get("additional_info", data.get("additionalInfo")),
    }


def _check_parents(games):
    """Every referenced parent must be an aggregate, in the batch or in the catalog"""
    batch = {g["id"]: g for g in games}
    wanted = {g["parent_id"] for g in games if g["parent_id"]}
    stored = {g.id: g for g in GameRepository.get_by_ids(wanted - set(batch))}
    for parent_id in wanted:
        if parent_id in batch:
            is_aggregate = batch[parent_id]["kind"] == GameKind.AGGREGATE
        elif parent_id in stored:
            is_aggregate = stored[parent_id].is_aggregate
        else:
            raise HierarchyError(f"Parent {parent_id} does not exist")
        if not is_aggregate:
            raise HierarchyError(f"Parent {parent_id} is not an aggregate")


class CatalogService:
    @staticmethod
    def add_single(data):
        game = validate_game(data)
        if GameRepository.get_by_id(game["id"]) is not None:
            raise ValidationException(f"Game with ID '{game['id']}' already exists", code="CONFLICT")
        _check_parents([game])
        created = GameRepository.create(**game)
        logger.info(f"Added game {created.id}")
        return created

    @staticmethod
    def parse_import(raw, default_console):
        """Parse a JSON import file into importable records and warnings.

        Raises ValidationException when the file itself is unusable (not JSON,
        not a list, unknown default console).
        """
        if default_console not in CONSOLES:
            raise ValidationException(f"Invalid console: {default_console}")
        if isinstance(raw, (str, bytes)):
            try:
                raw = json.loads(raw)
            except ValueError:
                raise ValidationException("File is not a valid JSON file!")
        if not isinstance(raw, list):
            raise ValidationException("File doesn't have the correct data structure!")

        result = ImportResult()
        seen = set()
        for i, entry in enumerate(raw, start=1):
            key = f"importgame_{i}"
            if not isinstance(entry, dict):
                result.warnings.append(ImportWarning(key, "Record is not an object", {"value": entry}))
                continue

            record = {
                "id": str(entry.get("id") or "").strip(),
                "title": str(entry.get("title", entry.get("name")) or "").strip(),
                "console": entry.get("console") or default_console,
                "region": REGION_ALIASES.get(str(entry.get("region") or "").lower()),
            }

            if not record["title"]:
                message = "Record with no title"
            elif not record["id"]:
                message = "Record with no ID"
            elif not record["region"]:
                message = f"Invalid region: '{entry.get('region')}'"
            elif record["console"] not in CONSOLES:
                message = f"Invalid console: '{record['console']}'"
            elif not is_safe_id(record["id"]):
                message = "Multiple IDs found!"
            elif record["id"] in seen:
                message = "Game with this ID already exists!"
            else:
                message = None

            if message:
                result.warnings.append(ImportWarning(key, message, record))
                continue
            seen.add(record["id"])
            result.games.append(record)

        existing = GameRepository.existing_ids(seen)
        if existing:
            kept = []
            for record in result.games:
                if record["id"] in existing:
                    result.warnings.append(ImportWarning(record["id"], "Game with this ID already exists!", record))
                else:
                    kept.append(record)
            result.games = kept

        logger.info(f"Parsed import: {len(result.games)} game(s), {len(result.warnings)} warning(s)")
        return result

    @staticmethod
    def import_batch(records):
        """Insert a list of validated records in one transaction"""
        games = [validate_game(r) for r in records]
        ids = [g["id"] for g in games]
        if len(set(ids)) != len(ids):
            raise ValidationException("Duplicate IDs in batch")
        existing = GameRepository.existing_ids(ids)
        if existing:
            raise ValidationException(f"Games already exist: {', '.join(sorted(existing))}", code="CONFLICT")
        _check_parents(games)
        # Aggregates first so children never reference a row not yet inserted
        games.sort(key=lambda g: g["kind"] != GameKind.AGGREGATE)

        GameRepository.create_many(games)
        removed = []
        if any(g["kind"] == GameKind.AGGREGATE for g in games):
            removed = HierarchyService.cleanup_all()
        logger.info(f"Imported {len(games)} game(s)")
        return {"imported": ids, "removed_aggregates": removed}

    @staticmethod
    def export_games():
        return [game.to_dict() for game in GameRepository.get_all()]

    @staticmethod
    def get_game(game_id) -> Optional[dict]:
        game = GameRepository.get_by_id(game_id)
        return game.to_dict() if game else None
