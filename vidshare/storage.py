import os
from werkzeug.utils import secure_filename
from .errors import StorageError
from .models import short_id, FILE_NAME_ALPHABET

ALLOWED_EXTENSIONS = {'mp4', 'mov', 'avi', 'mkv', 'webm', 'ogv', 'm4v'}
STORED_NAME_LENGTH = 10


def allowed_file(filename):
    return '.' in filename and \
           filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


class FileStore:
    """Stores uploaded video binaries as flat files under one folder."""

    def __init__(self, root, logger=None):
        self.root = root
        self.logger = logger

    def path_for(self, storage_ref):
        # storage_ref values are generated names, never caller-supplied paths
        return os.path.join(self.root, secure_filename(storage_ref))

    def exists(self, storage_ref):
        return os.path.exists(self.path_for(storage_ref))

    def save(self, file):
        """Persist a werkzeug ``FileStorage``; returns ``(storage_ref, size_bytes)``."""
        original_filename = secure_filename(file.filename)
        # secure_filename strips non-ASCII names down to the bare extension, so read it from the raw name
        file_extension = os.path.splitext(file.filename)[1].lower()
        storage_ref = f"{short_id(STORED_NAME_LENGTH, FILE_NAME_ALPHABET)}{file_extension}"
        while self.exists(storage_ref):
            storage_ref = f"{short_id(STORED_NAME_LENGTH, FILE_NAME_ALPHABET)}{file_extension}"

        file_path = self.path_for(storage_ref)
        try:
            if not os.path.exists(self.root):
                os.makedirs(self.root)
            file.save(file_path)
            return storage_ref, os.path.getsize(file_path)
        except OSError as e:
            if os.path.exists(file_path):
                os.remove(file_path)
            if self.logger:
                self.logger.error(f"Error saving upload {original_filename}: {e}")
            raise StorageError("Upload failed") from e

    def delete(self, storage_ref):
        """Remove a stored file. A file that is already gone is not an error."""
        file_path = self.path_for(storage_ref)
        try:
            os.remove(file_path)
        except FileNotFoundError:
            if self.logger:
                self.logger.warning(f"Stored file {storage_ref} was already missing on delete")
        except OSError as e:
            if self.logger:
                self.logger.error(f"Error deleting stored file {storage_ref}: {e}")
            raise StorageError("Delete failed") from e
