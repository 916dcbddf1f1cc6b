from flask import jsonify, current_app
from sqlalchemy.exc import SQLAlchemyError
from . import db


class VideoShareError(Exception):
    """Base class for failures reported to API callers as ``{"msg": ...}``."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {"msg": self.message}


class NotFoundError(VideoShareError):
    status_code = 404
    default_message = "Video not found"


class ExpiredError(VideoShareError):
    status_code = 410
    default_message = "Video link has expired"


class UnauthorizedError(VideoShareError):
    status_code = 401
    default_message = "Incorrect password"


class InvalidCredentialsError(VideoShareError):
    status_code = 401
    default_message = "Invalid credentials"


class AlreadyExistsError(VideoShareError):
    status_code = 409
    default_message = "User already exists"


class ValidationError(VideoShareError):
    status_code = 400
    default_message = "Invalid request"


class StorageError(VideoShareError):
    status_code = 500
    default_message = "Storage failure"


def register_error_handlers(app):
    @app.errorhandler(VideoShareError)
    def handle_video_share_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error):
        # Reads outside commit_or_raise land here; render them like any other storage failure
        db.session.rollback()
        current_app.logger.error(f"Database error: {error}")
        storage_error = StorageError()
        return jsonify(storage_error.to_dict()), storage_error.status_code

    @app.errorhandler(413)
    def handle_too_large(error):
        return jsonify({"msg": "Video file is too large"}), 413
