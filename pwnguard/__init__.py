from flask import Flask, has_request_context, request, session
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_babel import Babel

from config import Config
from pwnguard.utils.pwned_password import PwnedPassword

db = SQLAlchemy()
login_manager = LoginManager()
babel = Babel()
pwned_password = PwnedPassword()


def create_app(config_class=Config, test_config=None, breach_client=None):
    app = Flask(__name__)
    app.config.from_mapping(config_class().model_dump())
    if test_config:
        app.config.update(test_config)

    db.init_app(app)
    login_manager.init_app(app)
    pwned_password.init_app(app, client=breach_client)

    def get_locale():
        if not has_request_context():
            return app.config["BABEL_DEFAULT_LOCALE"]

        # 1. Cookie
        lang = request.cookies.get("language")
        if lang and lang in app.config["LANGUAGES"]:
            return lang

        # 2. Session
        lang = session.get("language")
        if lang and lang in app.config["LANGUAGES"]:
            return lang

        # 3. Browser preference
        return request.accept_languages.best_match(app.config["LANGUAGES"])

    babel.init_app(app, locale_selector=get_locale)

    from pwnguard.routes import register_blueprints
    register_blueprints(app)

    from pwnguard.cli import register_commands
    register_commands(app)

    from pwnguard import models  # noqa: F401

    return app


@login_manager.user_loader
def load_user(user_id):
    from pwnguard.models import User
    return db.session.get(User, int(user_id))
