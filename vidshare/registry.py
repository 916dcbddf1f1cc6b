"""The video registry: lifecycle and read rules for shared video links."""
import datetime
from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from . import db
from .errors import NotFoundError, ExpiredError, UnauthorizedError, ValidationError, StorageError
from .gate import decide, Outcome
from .models import Video, short_id, utcnow, VIDEO_ID_LENGTH

MAX_ID_ATTEMPTS = 5


def commit_or_raise(action):
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(f"Database error while trying to {action}: {e}")
        raise StorageError(f"Failed to {action}") from e


class VideoRegistry:
    def __init__(self, file_store):
        self.file_store = file_store

    def _new_id(self):
        for _ in range(MAX_ID_ATTEMPTS):
            candidate = short_id(VIDEO_ID_LENGTH)
            if db.session.get(Video, candidate) is None:
                return candidate
        raise StorageError("Could not allocate a unique video id")

    def create(self, storage_ref, original_name, size_bytes, owner_id=None,
               title=None, password=None, expiry_hours=None, now=None):
        now = now or utcnow()
        video = Video(
            id=self._new_id(),
            owner_id=owner_id,
            storage_ref=storage_ref,
            original_name=original_name,
            title=title or original_name,
            uploaded_at=now,
            views=0,
            size_bytes=size_bytes,
        )
        video.set_password(password)
        if expiry_hours is not None and expiry_hours > 0:
            try:
                video.expires_at = now + datetime.timedelta(hours=expiry_hours)
            except OverflowError:
                raise ValidationError("Expiry is too far in the future")

        db.session.add(video)
        commit_or_raise("save video")
        current_app.logger.info(f"Created video {video.id} for owner {owner_id} (protected={video.is_protected})")
        return video

    def list_by_owner(self, owner_id, now=None):
        now = now or utcnow()
        return Video.query.filter(
            Video.owner_id == owner_id,
            or_(Video.expires_at.is_(None), Video.expires_at > now),
        ).order_by(Video.uploaded_at.desc()).all()

    def _get_readable(self, video_id, now, submitted_password=None):
        video = db.session.get(Video, video_id)
        decision = decide(video, now, submitted_password)
        if decision.outcome is Outcome.NOT_FOUND:
            raise NotFoundError()
        if decision.outcome is Outcome.EXPIRED:
            raise ExpiredError()
        return video, decision

    def _increment_views(self, video):
        # Single UPDATE so concurrent readers never lose an increment
        Video.query.filter_by(id=video.id).update(
            {Video.views: Video.views + 1}, synchronize_session=False
        )
        commit_or_raise("record view")
        db.session.refresh(video)

    def get_for_view(self, video_id, now=None):
        """Returns ``(video, visible)``. Only a visible read counts as a view."""
        now = now or utcnow()
        video, decision = self._get_readable(video_id, now)
        if decision.outcome is Outcome.PASSWORD_REQUIRED:
            return video, False
        self._increment_views(video)
        return video, True

    def verify(self, video_id, submitted_password, now=None):
        now = now or utcnow()
        video, decision = self._get_readable(video_id, now, submitted_password)
        if not video.is_protected or decision.outcome is not Outcome.VISIBLE:
            current_app.logger.warning(f"Rejected password for video {video_id}")
            raise UnauthorizedError()
        self._increment_views(video)
        return video

    def delete_owned(self, video_id, owner_id):
        video = Video.query.filter_by(id=video_id, owner_id=owner_id).first()
        if video is None:
            current_app.logger.warning(f"Owner {owner_id} attempted to delete video {video_id} which is missing or not theirs")
            raise NotFoundError("Video not found or unauthorized")

        storage_ref = video.storage_ref
        db.session.delete(video)
        commit_or_raise("delete video")
        self.file_store.delete(storage_ref)
        current_app.logger.info(f"Deleted video {video_id} for owner {owner_id}")

    def update_title(self, video_id, owner_id, new_title):
        if not isinstance(new_title, str):
            raise ValidationError("Missing title")
        new_title = new_title.strip()
        if not new_title:
            raise ValidationError("Missing title")

        video = Video.query.filter_by(id=video_id, owner_id=owner_id).first()
        if video is None:
            current_app.logger.warning(f"Owner {owner_id} attempted to rename video {video_id} which is missing or not theirs")
            raise NotFoundError("Video not found or unauthorized")

        video.title = new_title
        commit_or_raise("update title")
        return video
