# Overview: Flask API routes for landing-page content; public reads and super-admin writes.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import (
    domain_error_response,
    internal_error_response,
    require_auth,
    require_permission,
)
from ..errors import DomainError
from ..services import content_service


content_bp = Blueprint("content", __name__, url_prefix="/api")


# =============================================================================
# PUBLIC READS
# =============================================================================

@content_bp.get("/hero")
def hero_route():
    return jsonify({"items": [h.to_dict() for h in content_service.list_hero_content()]})


@content_bp.get("/about")
def about_route():
    about = content_service.get_about_us()
    return jsonify({"about": about.to_dict() if about else None})


@content_bp.get("/companies")
def companies_route():
    return jsonify({"items": [c.to_dict() for c in content_service.list_companies()]})


@content_bp.get("/social-links")
def social_links_route():
    return jsonify({"items": [s.to_dict() for s in content_service.list_social_links()]})


@content_bp.get("/terms/<policy_type>")
def terms_route(policy_type: str):
    try:
        policy = content_service.get_terms_policy(policy_type)
    except DomainError as e:
        return domain_error_response(e)
    return jsonify({"policy": policy.to_dict()})


# =============================================================================
# SUPER ADMIN WRITES
# =============================================================================

def _write(operation, description: str, *args):
    try:
        record = operation(g.principal, *args)
    except DomainError as e:
        return domain_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to %s", description)
        return internal_error_response()

    if record is None:
        return jsonify({"message": "Deleted"}), 200
    return jsonify({"item": record.to_dict()}), 200


@content_bp.post("/super-admin/hero")
@require_auth
@require_permission("MANAGE_CONTENT")
def upsert_hero_route():
    return _write(content_service.upsert_hero_content, "save hero content", request.get_json(silent=True) or {})


@content_bp.delete("/super-admin/hero/<record_id>")
@require_auth
@require_permission("MANAGE_CONTENT")
def delete_hero_route(record_id: str):
    return _write(content_service.delete_hero_content, "delete hero content", record_id)


@content_bp.post("/super-admin/about")
@require_auth
@require_permission("MANAGE_CONTENT")
def upsert_about_route():
    return _write(content_service.upsert_about_us, "save about us", request.get_json(silent=True) or {})


@content_bp.post("/super-admin/companies")
@require_auth
@require_permission("MANAGE_CONTENT")
def upsert_company_route():
    return _write(content_service.upsert_company, "save company", request.get_json(silent=True) or {})


@content_bp.delete("/super-admin/companies/<record_id>")
@require_auth
@require_permission("MANAGE_CONTENT")
def delete_company_route(record_id: str):
    return _write(content_service.delete_company, "delete company", record_id)


@content_bp.post("/super-admin/social-links")
@require_auth
@require_permission("MANAGE_CONTENT")
def upsert_social_link_route():
    return _write(content_service.upsert_social_link, "save social link", request.get_json(silent=True) or {})


@content_bp.delete("/super-admin/social-links/<record_id>")
@require_auth
@require_permission("MANAGE_CONTENT")
def delete_social_link_route(record_id: str):
    return _write(content_service.delete_social_link, "delete social link", record_id)


@content_bp.post("/super-admin/terms")
@require_auth
@require_permission("MANAGE_CONTENT")
def upsert_terms_route():
    return _write(content_service.upsert_terms_policy, "save policy", request.get_json(silent=True) or {})
