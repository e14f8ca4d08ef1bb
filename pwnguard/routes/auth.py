from flask import Blueprint, current_app, g, jsonify, session
from flask_login import login_user, login_required, logout_user, current_user

from pwnguard import db
from pwnguard.forms import RegistrationForm, LoginForm, ChangePasswordForm
from pwnguard.models import User, RecordInvalid
from pwnguard.utils.pwned_password import LOGIN_PASSWORD_KEY, SESSION_KEY
from pwnguard.utils.messages import (
    AUTH_LOGIN_SUCCESS, AUTH_INVALID_CREDENTIALS, AUTH_LOGOUT_SUCCESS,
    AUTH_REGISTRATION_SUCCESS, AUTH_PASSWORD_CHANGED, AUTH_CURRENT_PASSWORD_INVALID,
    PWNED_PASSWORD_WARNING
)

bp = Blueprint("auth", __name__, url_prefix="/auth")


def _form_errors(form):
    return jsonify({'errors': form.errors}), 422


def _record_errors(user):
    return jsonify({
        'errors': user.errors.to_dict(),
        'details': user.errors.details(),
    }), 422


def _save(user):
    """Commit the user; on a failed model validation roll back and return the error response."""
    try:
        db.session.add(user)
        db.session.commit()
    except RecordInvalid as e:
        db.session.rollback()
        current_app.logger.info(f"Rejected password for {user.username}: {e.errors.details()}")
        return _record_errors(user)
    return None


@bp.route("/register", methods=['POST'])
def register():
    form = RegistrationForm()
    if not form.validate_on_submit():
        return _form_errors(form)

    if User.query.filter((User.username == form.username.data) | (User.email == form.email.data)).first():
        return jsonify({'errors': {'username': ['has already been taken']}}), 422

    user = User(username=form.username.data, email=form.email.data)
    user.set_password(form.password.data)
    if not user.validate():
        return _record_errors(user)

    failed = _save(user)
    if failed:
        return failed
    return jsonify({'message': str(AUTH_REGISTRATION_SUCCESS), 'id': user.id}), 201


@bp.route("/login", methods=['POST'])
def login():
    form = LoginForm()
    if not form.validate_on_submit():
        return _form_errors(form)

    user = User.query.filter_by(username=form.username.data).first()
    if not user or not user.check_password(form.password.data):
        return jsonify({'error': str(AUTH_INVALID_CREDENTIALS)}), 401

    # the user_logged_in receiver runs the sign-in breach check
    session.pop(SESSION_KEY, None)
    setattr(g, LOGIN_PASSWORD_KEY, form.password.data)
    login_user(user)

    payload = {'message': str(AUTH_LOGIN_SUCCESS), 'pwned_password': bool(session.get(SESSION_KEY))}
    if payload['pwned_password']:
        payload['warning'] = str(PWNED_PASSWORD_WARNING) % {'count': user.pwned_count}
    return jsonify(payload)


@bp.route("/logout", methods=['POST'])
@login_required
def logout():
    logout_user()
    session.pop(SESSION_KEY, None)
    return jsonify({'message': str(AUTH_LOGOUT_SUCCESS)})


@bp.route("/password", methods=['POST'])
@login_required
def change_password():
    form = ChangePasswordForm()
    if not form.validate_on_submit():
        return _form_errors(form)

    user = current_user._get_current_object()
    if not user.check_password(form.current_password.data):
        return jsonify({'errors': {'current_password': [str(AUTH_CURRENT_PASSWORD_INVALID)]}}), 422

    user.set_password(form.password.data)
    if not user.validate():
        db.session.rollback()
        return _record_errors(user)

    failed = _save(user)
    if failed:
        return failed
    session.pop(SESSION_KEY, None)
    return jsonify({'message': str(AUTH_PASSWORD_CHANGED)})
