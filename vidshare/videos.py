from flask import Blueprint, request, jsonify, current_app, url_for, send_from_directory
from flask_jwt_extended import jwt_required, get_jwt_identity
from .errors import ValidationError
from .registry import VideoRegistry
from .storage import FileStore, allowed_file

videos_bp = Blueprint('videos', __name__)
uploads_bp = Blueprint('uploads', __name__)

MAX_EXPIRY_HOURS = 24 * 365 * 10


def get_registry():
    file_store = FileStore(current_app.config['UPLOAD_FOLDER'], current_app.logger)
    return VideoRegistry(file_store)


def parse_expiry_hours(raw):
    if raw is None or str(raw).strip() == '':
        return None
    try:
        hours = int(raw)
    except (TypeError, ValueError):
        raise ValidationError("Expiry must be a whole number of hours")
    if hours > MAX_EXPIRY_HOURS:
        raise ValidationError(f"Expiry cannot be more than {MAX_EXPIRY_HOURS} hours")
    return hours


def json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def format_video(video, visible):
    data = video.to_dict(include_storage_ref=visible)
    if visible:
        data["file_url"] = url_for('uploads.serve_upload', storage_ref=video.storage_ref)
    return data


@videos_bp.route('/upload', methods=['POST'])
@jwt_required()
def upload_video():
    owner_id = get_jwt_identity()

    if 'video' not in request.files:
        return jsonify({"msg": "No video file uploaded"}), 400

    file = request.files['video']
    if file.filename == '':
        return jsonify({"msg": "No selected file"}), 400
    if not allowed_file(file.filename):
        return jsonify({"msg": "File type not allowed"}), 400

    expiry_hours = parse_expiry_hours(request.form.get('expiry'))
    registry = get_registry()
    storage_ref, size_bytes = registry.file_store.save(file)
    try:
        video = registry.create(
            storage_ref=storage_ref,
            original_name=file.filename,
            size_bytes=size_bytes,
            owner_id=owner_id,
            title=request.form.get('title'),
            password=request.form.get('password') or None,
            expiry_hours=expiry_hours,
        )
    except Exception:
        # Don't leave an orphaned file behind when the record could not be stored
        registry.file_store.delete(storage_ref)
        raise

    return jsonify(format_video(video, visible=True)), 201


@videos_bp.route('/videos', methods=['GET'])
@jwt_required()
def list_videos():
    videos = get_registry().list_by_owner(get_jwt_identity())
    return jsonify([format_video(video, visible=True) for video in videos]), 200


@videos_bp.route('/videos/<video_id>', methods=['GET'])
def view_video(video_id):
    video, visible = get_registry().get_for_view(video_id)
    return jsonify(format_video(video, visible)), 200


@videos_bp.route('/videos/<video_id>/verify', methods=['POST'])
def verify_video(video_id):
    data = json_body()
    video = get_registry().verify(video_id, data.get('password'))
    return jsonify(format_video(video, visible=True)), 200


@videos_bp.route('/videos/<video_id>', methods=['PATCH'])
@jwt_required()
def rename_video(video_id):
    data = json_body()
    video = get_registry().update_title(video_id, get_jwt_identity(), data.get('title'))
    return jsonify(format_video(video, visible=True)), 200


@videos_bp.route('/videos/<video_id>', methods=['DELETE'])
@jwt_required()
def delete_video(video_id):
    get_registry().delete_owned(video_id, get_jwt_identity())
    return jsonify({"msg": "Deleted"}), 200


@uploads_bp.route('/<storage_ref>')
def serve_upload(storage_ref):
    return send_from_directory(current_app.config['UPLOAD_FOLDER'], storage_ref, as_attachment=False)
