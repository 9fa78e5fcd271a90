from flask import Flask, jsonify

from .config import Config
from .extensions import db, jwt, cors, migrate
from .errors import register_error_handlers
from .utils.logging_utils import setup_logging

def create_app(config_class=Config):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_class)
    config_class.init_app(app)

    log = setup_logging(app)

    # Init extensions
    db.init_app(app)
    jwt.init_app(app)
    cors.init_app(app, resources={r"/api/*": {"origins": "*"}})
    migrate.init_app(app, db)

    register_error_handlers(app)

    # Register blueprints
    from .address import bp as address_bp; app.register_blueprint(address_bp)
    from .cart import bp as cart_bp; app.register_blueprint(cart_bp)
    from .coupon import bp as coupon_bp; app.register_blueprint(coupon_bp)
    from .inventory import bp as inventory_bp; app.register_blueprint(inventory_bp)
    from .payment import bp as payment_bp; app.register_blueprint(payment_bp)
    from .shipping import bp as shipping_bp; app.register_blueprint(shipping_bp)
    from .wishlist import bp as wishlist_bp; app.register_blueprint(wishlist_bp)

    from .cli import register_cli
    register_cli(app)

    @app.get("/")
    def health():
        return jsonify(ok=True, msg="API running")

    with app.app_context():
        from . import model  # noqa: F401  registers every table
        db.create_all()

    log.debug("blueprints: %s", sorted(app.blueprints.keys()))
    return app
