"""
Game Routes - catalog listing and admin maintenance
"""

import json

from flask import Blueprint, Response, current_app, request

from gamecatalog.api_responses import paged_response, success_response
from gamecatalog.constants import EXPORT_FILENAME
from gamecatalog.exceptions import NotFoundException, ValidationException
from gamecatalog.middleware.auth import access_required
from gamecatalog.queries import query_games_page
from gamecatalog.repositories.game_query_repository import GameQueryRepository
from gamecatalog.services.catalog_service import CatalogService
from gamecatalog.services.hierarchy_service import HierarchyService

games_bp = Blueprint("games", __name__, url_prefix="/api")


def _json_arg(name):
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        raise ValidationException(f"{name} must be valid JSON")


def _int_arg(payload, name, default):
    value = payload.get(name, default)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationException(f"{name} must be an integer")


def _list_input():
    if request.method == "POST":
        return request.get_json(silent=True) or {}
    return {
        "userID": request.args.get("userID"),
        "search": _json_arg("search"),
        "sort": _json_arg("sort"),
        "ownedFirst": request.args.get("ownedFirst") in ("1", "true", "True"),
        "skip": request.args.get("skip"),
        "take": request.args.get("take"),
    }


def _body():
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationException("Request body must be a JSON object")
    return body


@games_bp.route("/games/list", methods=["GET", "POST"])
def list_games():
    """Top-level catalog entries with their children nested"""
    payload = _list_input()
    query_settings = current_app.config["CATALOG_SETTINGS"]["query"]

    skip = _int_arg(payload, "skip", 0)
    take = _int_arg(payload, "take", query_settings["default_take"])
    take = min(take, query_settings["max_take"])

    sort = payload.get("sort")
    if payload.get("ownedFirst"):
        sort = {"columns": sort or {}, "ownedFirst": True}

    page = query_games_page(
        GameQueryRepository,
        user_id=payload.get("userID") or None,
        sort=sort,
        search=payload.get("search"),
        skip_take=(skip, take),
        max_rounds=query_settings["max_rounds"],
        strict=query_settings["strict_hierarchy"],
    )
    return paged_response([e.to_dict() for e in page.entries], skip, take, page.has_more)


@games_bp.route("/games/<game_id>")
def get_game(game_id):
    game = CatalogService.get_game(game_id)
    if game is None:
        raise NotFoundException(f"Game with ID '{game_id}' not found")
    return success_response(game)


@games_bp.route("/games", methods=["POST"])
@access_required("admin")
def add_game():
    body = _body()
    game = CatalogService.add_single(body.get("game", body))
    return success_response(game.to_dict(), status_code=201)


@games_bp.route("/games/import", methods=["POST"])
@access_required("admin")
def import_games():
    """Parse an import file; with ``commit`` set, insert the clean records too"""
    body = _body()
    parsed = CatalogService.parse_import(body.get("file"), body.get("console"))
    data = parsed.to_dict()
    if body.get("commit"):
        data.update(CatalogService.import_batch(parsed.games))
    return success_response(data)


@games_bp.route("/games/batch", methods=["POST"])
@access_required("admin")
def import_batch():
    records = request.get_json(silent=True)
    if not isinstance(records, list):
        raise ValidationException("Request body must be a JSON list")
    return success_response(CatalogService.import_batch(records), status_code=201)


@games_bp.route("/games/export")
@access_required("admin")
def export_games():
    games = CatalogService.export_games()
    return Response(
        json.dumps(games),
        mimetype="application/json",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@games_bp.route("/games/group", methods=["POST"])
@access_required("admin")
def group_games():
    body = _body()
    aggregate = HierarchyService.group(
        body.get("ids") or [],
        body.get("title"),
        aggregate_id=body.get("id"),
        additional_info=body.get("additional_info"),
    )
    return success_response(aggregate.to_dict(), status_code=201)


@games_bp.route("/games/<game_id>/parent", methods=["PUT"])
@access_required("admin")
def reparent_game(game_id):
    body = _body()
    game = HierarchyService.reparent(game_id, body.get("parent_id"))
    return success_response(game.to_dict())


@games_bp.route("/games/<game_id>/parent", methods=["DELETE"])
@access_required("admin")
def ungroup_game(game_id):
    game = HierarchyService.remove_from_group(game_id)
    return success_response(game.to_dict())


@games_bp.route("/games", methods=["DELETE"])
@access_required("admin")
def remove_games():
    body = _body()
    removed = HierarchyService.remove_games(body.get("ids") or [])
    return success_response({"removed": removed})
