from sqlalchemy.exc import IntegrityError
from . import db
from .errors import AlreadyExistsError, InvalidCredentialsError, StorageError
from .models import User, short_id, ACCOUNT_ID_LENGTH
from .registry import commit_or_raise


def register(username, password):
    if User.query.filter_by(username=username).first():
        raise AlreadyExistsError("Username already exists")

    user_id = short_id(ACCOUNT_ID_LENGTH)
    while db.session.get(User, user_id) is not None:
        user_id = short_id(ACCOUNT_ID_LENGTH)

    user = User(id=user_id, username=username, password=password)
    db.session.add(user)
    try:
        commit_or_raise("create account")
    except StorageError as e:
        # Lost a race with a concurrent registration of the same username
        if isinstance(e.__cause__, IntegrityError):
            raise AlreadyExistsError("Username already exists") from e
        raise
    return user


def authenticate(username, password):
    user = User.query.filter_by(username=username).first()
    if user is None or not user.check_password(password):
        raise InvalidCredentialsError()
    return user
