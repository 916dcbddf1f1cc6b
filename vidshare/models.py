from . import db
from werkzeug.security import generate_password_hash, check_password_hash
import datetime
import secrets

# URL-safe alphabet used for every public identifier
ID_ALPHABET = '0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ_abcdefghijklmnopqrstuvwxyz-'
# Stored file names avoid "_" and "-" so secure_filename leaves them unchanged
FILE_NAME_ALPHABET = ID_ALPHABET.replace('_', '').replace('-', '')
VIDEO_ID_LENGTH = 8
ACCOUNT_ID_LENGTH = 10


def short_id(size=10, alphabet=ID_ALPHABET):
    return ''.join(secrets.choice(alphabet) for _ in range(size))


def utcnow():
    """Naive UTC timestamp; SQLite drops tzinfo so all stored times are naive UTC."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.String(16), primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    def __init__(self, id, username, password):
        self.id = id
        self.username = username
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {"id": self.id, "username": self.username}

    def __repr__(self):
        return f'<User {self.username}>'


class Video(db.Model):
    __tablename__ = 'videos'

    id = db.Column(db.String(16), primary_key=True)
    # Nullable for single-tenant deployments where uploads have no owner
    owner_id = db.Column(db.String(16), db.ForeignKey('users.id'), nullable=True, index=True)
    owner = db.relationship('User', backref=db.backref('videos', lazy=True))
    storage_ref = db.Column(db.String(200), nullable=False) # Name of the stored file in UPLOAD_FOLDER
    original_name = db.Column(db.String(255), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    uploaded_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    views = db.Column(db.Integer, nullable=False, default=0)
    size_bytes = db.Column(db.BigInteger, nullable=False)
    password_hash = db.Column(db.String(256), nullable=True) # None means the link is unprotected
    expires_at = db.Column(db.DateTime, nullable=True) # None means the link never expires

    def set_password(self, password):
        self.password_hash = generate_password_hash(password) if password else None

    def check_password(self, password):
        if self.password_hash is None or not isinstance(password, str):
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def is_protected(self):
        return self.password_hash is not None

    def is_expired(self, now):
        return self.expires_at is not None and self.expires_at <= now

    def to_dict(self, include_storage_ref=False):
        """Public view of the record. The password hash is never included."""
        data = {
            "id": self.id,
            "owner_id": self.owner_id,
            "title": self.title,
            "original_name": self.original_name,
            "uploaded_at": self.uploaded_at.isoformat(),
            "views": self.views,
            "size_bytes": self.size_bytes,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "is_protected": self.is_protected,
        }
        if include_storage_ref:
            data["storage_ref"] = self.storage_ref
        return data

    def __repr__(self):
        return f'<Video {self.id} {self.title}>'
