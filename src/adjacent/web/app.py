"""Flask application: admin API routes and the public blog read API."""

from __future__ import annotations

import logging
from typing import Any

from flask import Flask, Response, jsonify, request, send_from_directory
from werkzeug.exceptions import HTTPException

from adjacent.admin.api import AdminAPI, post_to_dict
from adjacent.admin.auth import AuthGate
from adjacent.blog.formatter import format_content, render_html
from adjacent.blog.models import BlogPost
from adjacent.blog.services import PostService
from adjacent.config import SiteConfig, load_config
from adjacent.content.store import PostStore, create_store
from adjacent.errors import AdjacentError
from adjacent.media.uploads import (
    ImageStorage,
    ImageUploader,
    LocalImageStorage,
    UploadedFile,
    create_image_storage,
)

logger = logging.getLogger(__name__)

# Bodies above this never reach the upload validator.
MAX_REQUEST_BYTES = 32 * 1024 * 1024


def create_app(
    config: SiteConfig | None = None,
    *,
    store: PostStore | None = None,
    image_storage: ImageStorage | None = None,
) -> Flask:
    """Build the Flask app from config, with optional injected backends."""
    config = config or load_config()
    store = store or create_store(config)
    image_storage = image_storage or create_image_storage(config)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = MAX_REQUEST_BYTES
    app.config["SITE_CONFIG"] = config

    if not config.admin.is_configured:
        logger.warning("ADMIN_PASSWORD not set. The admin API will reject every request.")

    posts = PostService(store)
    uploader = ImageUploader(
        image_storage,
        prefix=config.uploads.prefix,
        cache_control=config.uploads.cache_control,
    )
    api = AdminAPI(AuthGate(config.admin.password), posts, uploader)

    register_error_handlers(app)
    register_admin_routes(app, api)
    register_public_routes(app, posts)
    if isinstance(image_storage, LocalImageStorage) and image_storage.base_url.startswith("/"):
        register_upload_routes(app, image_storage, config.uploads.cache_control)

    return app


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(AdjacentError)
    def handle_adjacent_error(exc: AdjacentError) -> tuple[Response, int]:
        if exc.status_code >= 500:
            logger.error("Store failure on %s %s: %s", request.method, request.path, exc.message)
        return jsonify({"error": exc.message}), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException) -> tuple[Response, int]:
        return jsonify({"error": exc.description}), exc.code or 500

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception) -> tuple[Response, int]:
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "Something went wrong. Please try again."}), 500


def register_admin_routes(app: Flask, api: AdminAPI) -> None:
    @app.get("/api/admin")
    def admin_list() -> Response:
        return jsonify(api.list_posts(request.headers.get("Authorization")))

    @app.post("/api/admin")
    def admin_create() -> Response:
        auth = request.headers.get("Authorization")
        api.gate.require(auth)
        return jsonify(api.create_post(auth, request.get_json(silent=True)))

    @app.put("/api/admin")
    def admin_update() -> Response:
        auth = request.headers.get("Authorization")
        api.gate.require(auth)
        return jsonify(api.update_post(auth, request.get_json(silent=True)))

    @app.delete("/api/admin")
    def admin_delete() -> Response:
        return jsonify(api.delete_post(request.headers.get("Authorization"), request.args.get("id")))

    @app.get("/api/admin/stats")
    def admin_stats() -> Response:
        return jsonify(api.stats(request.headers.get("Authorization")))

    @app.post("/api/admin/upload")
    def admin_upload() -> Response:
        auth = request.headers.get("Authorization")
        api.gate.require(auth)
        return jsonify(api.upload_image(auth, _uploaded_file()))


def _uploaded_file() -> UploadedFile | None:
    storage = request.files.get("file")
    if storage is None or not storage.filename:
        return None
    return UploadedFile(
        filename=storage.filename,
        content_type=storage.mimetype or "",
        data=storage.read(),
    )


def register_public_routes(app: Flask, posts: PostService) -> None:
    @app.get("/api/posts")
    def public_list() -> Response:
        return jsonify([_public_summary(p) for p in posts.list_published()])

    @app.get("/api/posts/<slug>")
    def public_detail(slug: str) -> Response:
        post = posts.get_published(slug)
        blocks = format_content(post.content)
        data: dict[str, Any] = post_to_dict(post)
        data["blocks"] = [b.model_dump(mode="json") for b in blocks]
        data["html"] = render_html(blocks)
        return jsonify(data)

    @app.get("/health")
    def health() -> tuple[dict[str, str], int]:
        return {"status": "healthy"}, 200


def _public_summary(post: BlogPost) -> dict[str, Any]:
    data = post_to_dict(post)
    data.pop("content", None)
    return data


def register_upload_routes(app: Flask, storage: LocalImageStorage, cache_control: str) -> None:
    @app.get(f"{storage.base_url}/<path:key>")
    def serve_upload(key: str) -> Response:
        response = send_from_directory(storage.root.resolve(), key)
        response.headers["Cache-Control"] = f"public, max-age={cache_control}"
        return response
