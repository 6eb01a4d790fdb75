# Overview: Flask API routes for image uploads; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, current_app

from ..services import upload_service
from ..services.upload_service import UploadError
from ..decorators import require_auth


uploads_bp = Blueprint("uploads", __name__, url_prefix="/api/v1/uploads")


@uploads_bp.post("")
@require_auth
def upload_file_route():
    """
    Upload one image (form field "file"), e.g. a product photo.

    Stored on Cloudinary when configured, otherwise under UPLOAD_DIR.
    """
    try:
        stored = upload_service.store_image(request.files.get("file"), folder="products")
    except UploadError as e:
        return jsonify({"success": False, "message": str(e)}), e.status
    except Exception:
        current_app.logger.exception("Failed to store upload")
        return jsonify({"success": False, "message": "Internal server error"}), 500

    return jsonify({"success": True, "data": stored.to_dict()}), 200


@uploads_bp.delete("/<path:file_name>")
@require_auth
def delete_file_route(file_name: str):
    """Delete a local file by name, or a hosted image by its public id (contains "/")."""
    try:
        where = upload_service.delete_image(file_name)
    except UploadError as e:
        return jsonify({"success": False, "message": str(e)}), e.status

    storage = "Cloudinary" if where == "hosted" else "local storage"
    return jsonify({"success": True, "message": f"File deleted successfully from {storage}"}), 200
