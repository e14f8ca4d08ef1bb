import os
import pytest
from pwnguard import create_app, db
from pwnguard.models import User
from pwnguard.services.breach_client import StaticBreachClient

PWNED_PASSWORD = 'password'
PWNED_PASSWORD_COUNT = 1_000_000
VALID_PASSWORD = 'fddkasnsdddghjt'


@pytest.fixture
def breach_client():
    """Stub corpus: 'password' has been seen a million times, nothing else."""
    return StaticBreachClient({PWNED_PASSWORD: PWNED_PASSWORD_COUNT})


@pytest.fixture
def app(breach_client, tmp_path):
    """Create and configure a test app."""
    os.environ.setdefault('SECRET_KEY', 'test-secret')
    app = create_app(test_config={
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'WTF_CSRF_ENABLED': False,
        'AUDIT_LOG_DIR': str(tmp_path / 'logs'),
        'PWNED_PASSWORD_CHECK_ENABLED': True,
        'MIN_PASSWORD_MATCHES': 1,
        'MIN_PASSWORD_MATCHES_WARN': None,
    }, breach_client=breach_client)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def create_user(app):
    """Build a user and try to save it; a rejected save is rolled back."""
    from pwnguard.models import RecordInvalid

    def _create(password, username='example', email='example@example.org'):
        user = User(username=username, email=email, password=password)
        db.session.add(user)
        try:
            db.session.commit()
        except RecordInvalid:
            db.session.rollback()
        return user

    return _create


@pytest.fixture
def valid_password_user(create_user):
    user = create_user(VALID_PASSWORD)
    assert len(user.errors) == 0
    return user


@pytest.fixture
def pwned_password_user(app):
    """A user who already has a breached password (saved with the check off)."""
    from pwnguard.utils.pwned_password import without_pwned_password_check
    with without_pwned_password_check():
        user = User(username='pwned', email='pwned@example.org', password=PWNED_PASSWORD)
        db.session.add(user)
        db.session.commit()
    return user
