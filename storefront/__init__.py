import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .config import Config
from .errors import StoreError
from .models import db

logger = logging.getLogger(__name__)


def create_app(config_object=None, **overrides) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_object or Config)
    app.config.update(overrides)

    logging.basicConfig(
        level=app.config['LOG_LEVEL'],
        format='%(asctime)s %(levelname)s %(name)s - %(message)s',
    )

    if app.config['ORDER_STATUS_MODE'] not in ('lenient', 'strict'):
        raise ValueError("ORDER_STATUS_MODE must be 'lenient' or 'strict'")

    db.init_app(app)

    from .admin import admin_bp
    from .auth import auth_bp
    from .routes import bp as shop_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(shop_bp)
    app.register_blueprint(admin_bp)

    register_error_handlers(app)
    register_commands(app)

    with app.app_context():
        db.create_all()
        if app.config['SEED_DATA']:
            from .seed import init_data
            init_data()

    return app


def register_error_handlers(app):
    @app.errorhandler(StoreError)
    def handle_store_error(e):
        # drop any half-applied changes from the failed request
        db.session.rollback()
        return jsonify({'error': e.message}), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({'error': e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def handle_exception(e):
        if app.debug:
            raise e
        db.session.rollback()
        logger.exception('unhandled error: %s', type(e).__name__)
        return jsonify({'error': 'Internal server error'}), 500


def register_commands(app):
    @app.cli.command('seed')
    def seed_command():
        """Ensure the base catalog and promo codes exist."""
        from .seed import init_data
        init_data()
        print('Seed data ensured')
