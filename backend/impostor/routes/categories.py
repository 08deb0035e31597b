from __future__ import annotations

from flask import Blueprint, current_app, jsonify

bp = Blueprint("categories", __name__)


@bp.get("/categories")
def get_categories():
    service = current_app.extensions["impostor"]
    return jsonify({"categories": sorted(service.categories)})
