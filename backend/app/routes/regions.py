"""
routes/regions.py — Public Category / City lookups.

Endpoints (base url_prefix=/api/v1/regions):
  GET /regions/categories → 200
  GET /regions/cities     → 200
"""

from __future__ import annotations

from flask import Blueprint, jsonify

from backend.app.extensions import db
from backend.app.services import region_service

regions_bp = Blueprint("regions", __name__)


@regions_bp.route("/categories", methods=["GET"])
def list_categories():
    result = region_service.list_categories(session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@regions_bp.route("/cities", methods=["GET"])
def list_cities():
    result = region_service.list_cities(session=db.session)
    return jsonify({"data": result, "warnings": []}), 200
