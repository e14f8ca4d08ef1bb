from pwnguard import db
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from sqlalchemy import event, inspect, orm
from sqlalchemy.orm import Session, object_session
import datetime
from contextlib import nullcontext

from pwnguard.utils.messages import render_error
from pwnguard.utils.pwned_password import BreachCheckResult, current_hook


class RecordErrors:
    """Validation errors of one record, stored as (field, kind, context)."""

    def __init__(self):
        self._errors = []

    def add(self, field, kind, **context):
        self._errors.append((field, kind, context))

    def clear(self):
        self._errors = []

    def details(self, field=None):
        return [
            {'field': f, 'kind': kind, **context}
            for f, kind, context in self._errors
            if field is None or f == field
        ]

    def messages(self, field):
        return [render_error(kind, context) for f, kind, context in self._errors if f == field]

    def to_dict(self):
        rendered = {}
        for f, kind, context in self._errors:
            rendered.setdefault(f, []).append(render_error(kind, context))
        return rendered

    def __iter__(self):
        return iter(self._errors)

    def __len__(self):
        return len(self._errors)

    def __bool__(self):
        return bool(self._errors)


class RecordInvalid(ValueError):

    def __init__(self, record):
        self.record = record
        self.errors = record.errors
        super().__init__(f"{record.__class__.__name__} is invalid: {record.errors.to_dict()}")


class PwnedPasswordMixin:
    """Adds the breached-password check to a model with a ``password_hash`` column.

    ``validate()`` runs the check explicitly. Flushing an insert or an update
    whose password fails the check raises ``RecordInvalid``.
    """

    _password = None
    _validated_hash = None

    def __init__(self, **kwargs):
        self._init_pwned_state()
        super().__init__(**kwargs)

    @orm.reconstructor
    def _init_pwned_state(self):
        self.errors = RecordErrors()
        self.pwned_result = BreachCheckResult()

    @property
    def password(self):
        return self._password

    @password.setter
    def password(self, value):
        self._password = value
        self.password_hash = generate_password_hash(value) if value else None

    @property
    def is_persisted(self):
        return inspect(self).has_identity

    def password_changed(self):
        """True when a new plaintext password was assigned and not yet saved."""
        if self._password is None:
            return False
        return inspect(self).attrs.password_hash.history.has_changes()

    @property
    def pwned_count(self):
        return self.pwned_result.occurrence_count

    @property
    def is_pwned(self):
        # judged against the cutoff of the attempt that produced the count
        threshold = self.pwned_result.threshold
        return threshold is not None and self.pwned_count >= threshold

    @property
    def is_flagged_pwned(self):
        return self.pwned_result.flagged

    def validate(self):
        # Loading expired attributes (e.g. id) must not flush this record mid-check
        session = object_session(self)
        with session.no_autoflush if session is not None else nullcontext():
            self.errors.clear()
            current_hook().run(self, self._password)
            if self.errors or not self.password_changed():
                self._validated_hash = None
            else:
                self._validated_hash = self.password_hash
        return not self.errors

    def is_valid(self):
        return self.validate()


@event.listens_for(Session, 'before_flush')
def _validate_before_flush(session, flush_context, instances):
    for target in list(session.new) + list(session.dirty):
        if not isinstance(target, PwnedPasswordMixin):
            continue
        # validate() already passed for this password
        if target.password_changed() and target._validated_hash == target.password_hash:
            continue
        if not target.validate():
            raise RecordInvalid(target)


class User(PwnedPasswordMixin, UserMixin, db.Model):
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True,
                         nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: datetime.datetime.now(datetime.timezone.utc))

    def __str__(self):
        return self.username

    def set_password(self, password):
        self.password = password

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def pwned_after_password_attempt(self, password):
        from pwnguard.utils.audit_log import log_pwned_password_attempt
        log_pwned_password_attempt(self, self.pwned_count)

    def pwned_after_error(self, error):
        from pwnguard.utils.audit_log import log_pwned_lookup_error
        log_pwned_lookup_error(self, error)
