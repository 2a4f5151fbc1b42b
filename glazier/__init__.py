import os
import logging
from flask import Flask, redirect, url_for
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from dotenv import load_dotenv

from .config import CONFIGS, DEFAULT_SECRET, ProdConfig

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()


def create_app(config_name: str | None = None) -> Flask:
    """Application factory with environment based configuration."""
    load_dotenv()

    app = Flask(__name__, instance_relative_config=True)
    os.makedirs(app.instance_path, exist_ok=True)

    # Pick configuration
    env = config_name or os.getenv('ENV') or os.getenv('FLASK_ENV') or 'production'
    app.config.from_object(CONFIGS.get(env, ProdConfig))

    # Initialise logging
    logging.basicConfig(level=logging.DEBUG if app.debug else logging.INFO)
    if not (app.debug or app.testing) and app.config['JWT_SECRET'] == DEFAULT_SECRET:
        logging.warning('SECRET_KEY and JWT_SECRET are unset; sessions are signed with the default key')

    db.init_app(app)
    migrate.init_app(app, db)

    # Ensure models loaded so tables can be created
    from glazier import models  # noqa
    with app.app_context():
        db.create_all()

    @app.route('/')
    def index():
        return redirect(url_for('dashboard.summary'))

    from glazier.errors import register_error_handlers
    register_error_handlers(app)

    from glazier.auth.routes import bp as auth_bp
    from glazier.customers.routes import bp as customers_bp
    from glazier.products.routes import bp as products_bp
    from glazier.estimates.routes import bp as estimates_bp, estimates_cli
    from glazier.dashboard.routes import bp as dashboard_bp

    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(customers_bp, url_prefix='/customers')
    app.register_blueprint(products_bp, url_prefix='/products')
    app.register_blueprint(estimates_bp, url_prefix='/estimates')
    app.register_blueprint(dashboard_bp, url_prefix='/dashboard')
    app.cli.add_command(estimates_cli)

    return app
