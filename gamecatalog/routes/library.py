"""
Library Routes - per-user ownership
"""

from flask import Blueprint
from flask_login import current_user

from gamecatalog.api_responses import success_response
from gamecatalog.middleware.auth import access_required
from gamecatalog.services.ownership_service import OwnershipService

library_bp = Blueprint("library", __name__, url_prefix="/api")


@library_bp.route("/library")
@access_required("user")
def get_library():
    return success_response(OwnershipService.owned_ids(current_user.id))


@library_bp.route("/library/<game_id>", methods=["PUT"])
@access_required("user")
def mark_owned(game_id):
    changed = OwnershipService.mark_ownership(current_user.id, game_id, owned=True)
    return success_response({"game_id": game_id, "owned": True, "changed": changed})


@library_bp.route("/library/<game_id>", methods=["DELETE"])
@access_required("user")
def mark_unowned(game_id):
    changed = OwnershipService.mark_ownership(current_user.id, game_id, owned=False)
    return success_response({"game_id": game_id, "owned": False, "changed": changed})
