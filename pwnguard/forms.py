from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField
from wtforms.validators import DataRequired, Email, EqualTo, Length
from flask_babel import lazy_gettext as _


class RegistrationForm(FlaskForm):
    username = StringField(_('Username'), validators=[DataRequired(), Length(min=3, max=50)])
    email = StringField(_('Email'), validators=[DataRequired(), Email()])
    password = PasswordField(_('Password'), validators=[DataRequired()])
    confirm_password = PasswordField(_('Confirm Password'), validators=[
                                     DataRequired(), EqualTo('password', message=_('Passwords must match.'))])


class LoginForm(FlaskForm):
    username = StringField(_('Username'), validators=[DataRequired()])
    password = PasswordField(_('Password'), validators=[DataRequired()])


class ChangePasswordForm(FlaskForm):
    current_password = PasswordField(_('Current Password'), validators=[DataRequired()])
    password = PasswordField(_('New Password'), validators=[DataRequired()])
    confirm_password = PasswordField(
        _('Confirm New Password'),
        validators=[DataRequired(), EqualTo('password', message=_('Passwords must match.'))]
    )
