import secrets
from flask import Flask, current_app, has_request_context, request
from flask_wtf.csrf import CSRFProtect
from config import Config
from finance import clamp_percentage, format_currency, ValidationError
from preferences import load_settings, load_theme
from store import RecordCache
from routes.auth import auth_bp
from routes.dashboard import dashboard_bp
from routes.fees import fees_bp
from routes.expenses import expenses_bp
from routes.categories import categories_bp
from routes.profile import profile_bp
from routes.settings import settings_bp

csrf = CSRFProtect()

SECURITY_HEADERS = {
    'X-Content-Type-Options': 'nosniff',
    'X-Frame-Options': 'DENY',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
}


def clamp_filter(value, min_val=0, max_val=100):
    try:
        return float(clamp_percentage(value, min_val, max_val))
    except ValidationError:
        return 0


def currency_filter(value, currency=None):
    if currency is None:
        if has_request_context():
            currency = load_settings(request)['currency']
        else:
            currency = current_app.config['DEFAULT_CURRENCY']
    return format_currency(value, currency)


def inject_preferences():
    return {
        'theme': load_theme(request),
        'preferences': load_settings(request),
    }


def set_security_headers(response):
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    return response


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    if not app.config.get("SECRET_KEY"):
        app.config["SECRET_KEY"] = secrets.token_hex(32)
    app.config.setdefault('DEFAULT_CURRENCY', 'INR')
    app.config.setdefault('PREFERENCE_COOKIE_MAX_AGE', 365 * 24 * 60 * 60)
    app.config.setdefault('MIN_PASSWORD_LENGTH', 8)
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    config_class.init_db(app)
    app.record_cache = RecordCache()
    csrf.init_app(app)

    app.register_blueprint(auth_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(fees_bp)
    app.register_blueprint(expenses_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(profile_bp)
    app.register_blueprint(settings_bp)

    app.jinja_env.filters['clamp'] = clamp_filter
    app.jinja_env.filters['currency'] = currency_filter
    app.context_processor(inject_preferences)
    app.after_request(set_security_headers)

    return app


if __name__ == '__main__':
    create_app().run()
