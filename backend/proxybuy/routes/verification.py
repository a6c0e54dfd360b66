# Overview: Flask API routes for identity verification uploads.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import domain_error_response, internal_error_response, require_auth
from ..errors import DomainError
from ..services import upload_service, verification


verification_bp = Blueprint("verification", __name__, url_prefix="/api/verification")


@verification_bp.post("/upload")
@require_auth
def upload_verification_route():
    """
    Submit identity evidence.

    Multipart form with two image files:
    - id_photo: photo of a government ID
    - selfie: photo of the account holder

    Re-submitting replaces earlier evidence and puts the account back into
    pending review. If either file is rejected neither is kept.
    """
    id_photo = request.files.get("id_photo")
    selfie = request.files.get("selfie")
    if not id_photo or not selfie:
        return jsonify({
            "error": "validation_error",
            "message": "Both id_photo and selfie files are required",
        }), 400

    stored_paths = []
    try:
        stored_paths.append(upload_service.save_upload(id_photo, "verification").path)
        stored_paths.append(upload_service.save_upload(selfie, "verification").path)
        user = verification.submit_verification(g.principal, *stored_paths)
    except DomainError as e:
        upload_service.discard_uploads(stored_paths)
        return domain_error_response(e)
    except Exception:
        upload_service.discard_uploads(stored_paths)
        current_app.logger.exception("Failed to submit verification")
        return internal_error_response()

    current_app.logger.info("User %s submitted verification documents", user.id)
    return jsonify({"user": user.to_dict(), "message": "Verification submitted"}), 200
