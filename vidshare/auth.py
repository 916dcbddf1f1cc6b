from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import create_access_token, jwt_required, current_user
from .models import User
from . import db, jwt
from .accounts import register, authenticate
from .errors import ValidationError

auth_bp = Blueprint('auth', __name__)


def _credentials():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    username = data.get('username')
    password = data.get('password')
    if not isinstance(username, str) or not isinstance(password, str) or not username or not password:
        raise ValidationError("Username and password are required")
    return username, password


def _token_response(user, status):
    additional_claims = {'username': user.username}
    access_token = create_access_token(identity=user.id, additional_claims=additional_claims)
    return jsonify(token=access_token, user=user.to_dict()), status


@auth_bp.route('/register', methods=['POST'])
def register_account():
    username, password = _credentials()
    user = register(username, password)
    current_app.logger.info(f"Registered account {user.username}")
    return _token_response(user, 201)


@auth_bp.route('/login', methods=['POST'])
def login():
    username, password = _credentials()
    user = authenticate(username, password)
    return _token_response(user, 200)


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def me():
    return jsonify(user=current_user.to_dict()), 200


# Callback for loading a user from an access token
# Tokens whose account no longer exists are rejected by flask-jwt-extended
@jwt.user_lookup_loader
def user_lookup_callback(_jwt_header, jwt_data):
    user_id = jwt_data["sub"]
    if not user_id:
        return None
    return db.session.get(User, user_id)

@jwt.user_lookup_error_loader
def user_lookup_error_callback(_jwt_header, jwt_data):
    return jsonify({'msg': 'User not found for token'}), 401

@jwt.expired_token_loader
def expired_token_callback(jwt_header, jwt_payload):
    return jsonify({'msg': 'The token has expired'}), 401

@jwt.invalid_token_loader
def invalid_token_callback(error_string):
    return jsonify({'msg': f'Invalid token: {error_string}'}), 401

@jwt.unauthorized_loader
def missing_token_callback(error_string):
    return jsonify({'msg': f'Request does not contain an access token: {error_string}'}), 401
