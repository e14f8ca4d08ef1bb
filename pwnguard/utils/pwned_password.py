"""Pwned Passwords validation for user models.

New registrations are rejected when the password appears in the breach corpus
at least MIN_PASSWORD_MATCHES times. Password changes on existing records use
MIN_PASSWORD_MATCHES_WARN when it is set. After a successful sign-in the
password can be checked again and the user warned instead of blocked.

Lookups fail open: when the breach API is unreachable, slow or broken the
password is accepted. Sign-up and login must not depend on a third-party API
being up. Records can observe swallowed errors by implementing
``pwned_after_error(error)``.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from flask import current_app, flash, g, has_request_context, request, session
from flask_login import user_logged_in

from pwnguard.services.breach_client import (
    BreachLookupClient,
    BreachLookupError,
    LookupOptions,
    PwnedPasswordsClient,
)
from pwnguard.utils.messages import PWNED_PASSWORD_WARNING
from pwnguard.utils.pwned_policy import Decision, Thresholds, evaluate, effective_threshold

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'pwned_password'
ERROR_KIND = 'pwned_password'
SESSION_KEY = 'pwned_password'
# flask.g attribute a login view sets to the validated plaintext
LOGIN_PASSWORD_KEY = 'pwned_password_login_password'


class AttemptOutcome(str, Enum):
    RESET = 'reset'
    SKIPPED = 'skipped'
    ACCEPTED = 'accepted'
    REJECTED = 'rejected'
    ERRORED_ACCEPTED = 'errored_accepted'


@dataclass
class BreachCheckResult:
    """Outcome of one validation attempt. Never persisted."""

    occurrence_count: int = 0
    checked_at: Optional[datetime] = None
    erred: bool = False
    outcome: AttemptOutcome = AttemptOutcome.RESET
    flagged: bool = False
    # count cutoff applied in this attempt; None when no lookup succeeded
    threshold: Optional[int] = None


@dataclass(frozen=True)
class PwnedPasswordSettings:
    check_enabled: bool = True
    check_on_sign_in: bool = True
    thresholds: Thresholds = field(default_factory=Thresholds)
    open_timeout: float = 5.0
    read_timeout: float = 5.0
    user_agent: str = 'pwnguard'
    form_field: str = 'password'

    @classmethod
    def from_config(cls, config) -> 'PwnedPasswordSettings':
        return cls(
            check_enabled=bool(config.get('PWNED_PASSWORD_CHECK_ENABLED', True)),
            check_on_sign_in=bool(config.get('PWNED_PASSWORD_CHECK_ON_SIGN_IN', True)),
            thresholds=Thresholds(
                reject=config.get('MIN_PASSWORD_MATCHES', 1),
                warn=config.get('MIN_PASSWORD_MATCHES_WARN'),
            ),
            open_timeout=config.get('PWNED_PASSWORD_OPEN_TIMEOUT', 5.0),
            read_timeout=config.get('PWNED_PASSWORD_READ_TIMEOUT', 5.0),
            user_agent=config.get('PWNED_PASSWORD_USER_AGENT', 'pwnguard'),
            form_field=config.get('PWNED_PASSWORD_FORM_FIELD', 'password'),
        )

    @property
    def check_on_sign_in_enabled(self) -> bool:
        return self.check_enabled and self.check_on_sign_in

    @property
    def lookup_options(self) -> LookupOptions:
        return LookupOptions(
            open_timeout=self.open_timeout,
            read_timeout=self.read_timeout,
            user_agent=self.user_agent,
        )


class PwnedPasswordHook:
    """Runs the breach check for one record inside its validation cycle.

    The record must provide ``pwned_result``, ``is_persisted``,
    ``password_changed()``, ``errors.add(field, kind, **context)`` and ``id``.
    ``pwned_after_password_attempt(password)`` and ``pwned_after_error(error)``
    are optional.
    """

    def __init__(self, settings: PwnedPasswordSettings, client: BreachLookupClient):
        self.settings = settings
        self.client = client

    def on_before_validate(self, record):
        record.pwned_result = BreachCheckResult()

    def check_enabled(self, record) -> bool:
        return self.settings.check_enabled and record.password_changed()

    def min_matches(self, record) -> int:
        return effective_threshold(record.is_persisted, self.settings.thresholds)

    def run(self, record, password) -> Decision:
        """One full attempt: reset, then either skip or query."""
        self.on_before_validate(record)
        if not self.check_enabled(record):
            record.pwned_result.outcome = AttemptOutcome.SKIPPED
            return Decision.ACCEPT
        return self.validate_password(record, password)

    def validate_password(self, record, password) -> Decision:
        result = record.pwned_result
        if not self._lookup(record, password):
            result.outcome = AttemptOutcome.ERRORED_ACCEPTED
            return Decision.ACCEPT

        result.threshold = self.min_matches(record)
        decision = evaluate(result.occurrence_count, record.is_persisted, self.settings.thresholds)
        if decision == Decision.REJECT:
            record.errors.add('password', ERROR_KIND,
                              count=result.occurrence_count, user_id=record.id)
            result.outcome = AttemptOutcome.REJECTED
        else:
            result.outcome = AttemptOutcome.ACCEPTED
        return decision

    def sign_in_check(self, record, password) -> bool:
        """Non-blocking check after authentication. Returns True when the
        password should be flagged to the user."""
        self.on_before_validate(record)
        result = record.pwned_result
        if not self.settings.check_on_sign_in_enabled:
            result.outcome = AttemptOutcome.SKIPPED
            return False
        if not self._lookup(record, password):
            result.outcome = AttemptOutcome.ERRORED_ACCEPTED
            return False

        result.threshold = self.settings.thresholds.warn_or_reject
        decision = evaluate(result.occurrence_count, record.is_persisted,
                            self.settings.thresholds, blocking=False)
        result.flagged = decision == Decision.WARN
        result.outcome = AttemptOutcome.ACCEPTED
        return result.flagged

    def _lookup(self, record, password) -> bool:
        """Query the breach corpus and store the count on the record.

        Returns False when the lookup failed; the error is swallowed here
        (fail-open) and only handed to ``pwned_after_error``.
        """
        result = record.pwned_result
        after_attempt = getattr(record, 'pwned_after_password_attempt', None)
        try:
            result.occurrence_count = self.client.query(password or '', self.settings.lookup_options)
            result.checked_at = datetime.now(timezone.utc)
            if callable(after_attempt):
                after_attempt(password)
            return True
        except BreachLookupError as e:
            logger.debug(f"Pwned password lookup failed, accepting password: {e.__class__.__name__}")
            result.occurrence_count = 0
            result.erred = True
            after_error = getattr(record, 'pwned_after_error', None)
            if callable(after_error):
                after_error(e)
            return False


class PwnedPassword:
    """Flask extension. Per-app state lives in ``app.extensions``."""

    def __init__(self, app=None, client: Optional[BreachLookupClient] = None):
        self.client = client
        if app is not None:
            self.init_app(app, client=client)

    def init_app(self, app, client: Optional[BreachLookupClient] = None):
        client = client or self.client or PwnedPasswordsClient()
        app.extensions[EXTENSION_KEY] = PwnedPasswordState(
            PwnedPasswordSettings.from_config(app.config), client)
        user_logged_in.connect(_check_on_sign_in, app)


class PwnedPasswordState:
    """Settings and lookup client of one app.

    Settings are read from ``app.config`` once in ``init_app`` and are
    read-only afterwards, except inside ``override``.
    """

    def __init__(self, settings: PwnedPasswordSettings, client: BreachLookupClient):
        self.settings = settings
        self.client = client

    @property
    def hook(self) -> PwnedPasswordHook:
        return PwnedPasswordHook(self.settings, self.client)

    @contextmanager
    def override(self, **changes):
        """Temporarily replace settings. For tests only.

        Accepts PwnedPasswordSettings fields plus ``reject_threshold`` and
        ``warn_threshold``. The previous settings are restored on exit, also
        when the block raises.
        """
        previous = self.settings
        thresholds = previous.thresholds
        if 'reject_threshold' in changes or 'warn_threshold' in changes:
            thresholds = Thresholds(
                reject=changes.pop('reject_threshold', thresholds.reject),
                warn=changes.pop('warn_threshold', thresholds.warn),
            )
            changes['thresholds'] = thresholds
        self.settings = replace(previous, **changes)
        try:
            yield self.settings
        finally:
            self.settings = previous


def get_extension(app=None) -> PwnedPasswordState:
    app = app or current_app
    return app.extensions[EXTENSION_KEY]


def current_hook() -> PwnedPasswordHook:
    return get_extension().hook


@contextmanager
def with_pwned_password_check(app=None):
    with get_extension(app).override(check_enabled=True) as settings:
        yield settings


@contextmanager
def without_pwned_password_check(app=None):
    with get_extension(app).override(check_enabled=False) as settings:
        yield settings


def _check_on_sign_in(sender, user, **extra):
    """Flask-Login ``user_logged_in`` receiver.

    Re-checks the submitted password and leaves ``session['pwned_password']``
    plus a flash warning for the view layer. Never blocks the login.
    """
    if not has_request_context() or not hasattr(user, 'pwned_result'):
        return
    ext = get_extension(sender)
    if not ext.settings.check_on_sign_in_enabled:
        return
    password = g.pop(LOGIN_PASSWORD_KEY, None) or _submitted_password(ext.settings.form_field)
    if not password:
        return

    flagged = ext.hook.sign_in_check(user, password)
    session[SESSION_KEY] = flagged
    if flagged:
        flash(str(PWNED_PASSWORD_WARNING) % {'count': user.pwned_result.occurrence_count}, 'warning')


def _submitted_password(field_name):
    password = request.form.get(field_name)
    if password:
        return password
    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        return payload.get(field_name)
    return None
