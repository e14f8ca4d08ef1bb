"""
Standardized user-facing messages.
Validation errors are stored as (field, kind, context) and rendered here.
"""

from flask_babel import lazy_gettext as _

# Validation errors, keyed by error kind
ERROR_MESSAGES = {
    'pwned_password': _("has appeared in a data breach %(count)s times"),
    'blank': _("can't be blank"),
    'taken': _("has already been taken"),
    'confirmation': _("doesn't match password"),
}
ERROR_UNKNOWN = _("is invalid")

# Auth
AUTH_LOGIN_SUCCESS = _("Login successful!")
AUTH_INVALID_CREDENTIALS = _("Invalid username or password. Please try again.")
AUTH_LOGOUT_SUCCESS = _("You have been logged out.")
AUTH_REGISTRATION_SUCCESS = _("Registration successful!")
AUTH_PASSWORD_CHANGED = _("Your password has been changed.")
AUTH_CURRENT_PASSWORD_INVALID = _("Current password is incorrect.")

# Shown after sign-in when the password used is in the breach corpus
PWNED_PASSWORD_WARNING = _(
    "The password you used to sign in has appeared in a data breach %(count)s times. "
    "Please change it.")


def render_error(kind, context):
    """Render one stored validation error as a localized string."""
    template = ERROR_MESSAGES.get(kind, ERROR_UNKNOWN)
    return str(template) % dict(context)
