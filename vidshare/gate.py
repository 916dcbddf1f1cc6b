"""Access decisions for shared video links.

``decide`` is pure: it inspects a record and a clock reading and never touches
the database. Checks run in a fixed order (existence, then expiry, then
password), so an expired protected link reports ``EXPIRED``.
"""
import enum
from collections import namedtuple


class Outcome(enum.Enum):
    VISIBLE = 'visible'
    PASSWORD_REQUIRED = 'password_required'
    EXPIRED = 'expired'
    NOT_FOUND = 'not_found'


Decision = namedtuple('Decision', ['outcome', 'storage_ref'])


def decide(record, now, submitted_password=None):
    """Return a ``Decision`` for ``record`` at time ``now``.

    ``storage_ref`` is only populated when the outcome is ``VISIBLE``.
    A wrong ``submitted_password`` yields ``PASSWORD_REQUIRED``, same as none.
    """
    if record is None:
        return Decision(Outcome.NOT_FOUND, None)
    if record.is_expired(now):
        return Decision(Outcome.EXPIRED, None)
    if record.is_protected and not record.check_password(submitted_password):
        return Decision(Outcome.PASSWORD_REQUIRED, None)
    return Decision(Outcome.VISIBLE, record.storage_ref)
