import logging

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_bcrypt import Bcrypt
from flask_migrate import Migrate
from flask_restx import Api
from furrchum.config import Config

logger = logging.getLogger(__name__)

migrate = Migrate()
db = SQLAlchemy()
jwt = JWTManager()
bcrypt = Bcrypt()

api = Api(
    title='Furrchum API',
    version='1.0',
    description='Veterinary telemedicine: bookings, pets, prescriptions and payments',
    doc='/docs',
    ui_config={
        'displayOperationId': True,
        'docExpansion': 'none',
        'filter': True,
        'defaultModelsExpandDepth': 1,
        'defaultModelExpandDepth': 1
    },
    security=[{'BearerAuth': []}],  # Define JWT security
    authorizations={
        'BearerAuth': {
            'type': 'apiKey',
            'in': 'header',
            'name': 'Authorization',
            'description': 'Enter your JWT token as "Bearer <token>"'
        }
    }
)


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    bcrypt.init_app(app)

    # Enable CORS
    CORS(app, resources={r"/*": {"origins": app.config.get('CORS_ORIGINS', '*')}},
         supports_credentials=app.config.get('CORS_SUPPORTS_CREDENTIALS', True),
         allow_headers=app.config.get('CORS_ALLOW_HEADERS', ["Content-Type", "Authorization"]),
         methods=app.config.get('CORS_METHODS', ["GET", "POST", "PUT", "DELETE", "OPTIONS"]))

    api.init_app(app)

    # Register API namespaces and domain error handlers
    from .errors import register_error_handlers
    from .routes import register_namespaces
    register_namespaces(api)
    register_error_handlers(api)

    @jwt.unauthorized_loader
    def missing_token(reason):
        return {'message': reason, 'error': 'Unauthorized'}, 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return {'message': reason, 'error': 'Unauthorized'}, 401

    with app.app_context():
        from . import models  # noqa: F401  register tables
        db.create_all()

    logger.info(f"Furrchum API ready ({app.config['SQLALCHEMY_DATABASE_URI'].split('://')[0]})")
    return app
