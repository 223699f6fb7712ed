from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_mail import Mail
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from dotenv import load_dotenv

from commute_permits.utils.logging_config import setup_logging
from commute_permits.utils.error_handler import init_error_handlers

load_dotenv()

# Initialize extensions
db = SQLAlchemy()
login_manager = LoginManager()
mail = Mail()
limiter = Limiter(key_func=get_remote_address)


def create_app(config_name='default', config_overrides=None):
    app = Flask(__name__)
    
    # Load configuration
    if config_name == 'development':
        from config.development import DevelopmentConfig
        app.config.from_object(DevelopmentConfig)
    elif config_name == 'production':
        from config.production import ProductionConfig
        app.config.from_object(ProductionConfig)
    elif config_name == 'testing':
        from config.testing import TestingConfig
        app.config.from_object(TestingConfig)
    else:
        from config.base import Config
        app.config.from_object(Config)
    
    if config_overrides:
        app.config.update(config_overrides)
    
    # Setup logging based on config
    setup_logging(app.config['LOG_LEVEL'], app.config['LOG_DIR'])
    
    # Initialize extensions with app
    db.init_app(app)
    login_manager.init_app(app)
    mail.init_app(app)
    limiter.init_app(app)
    
    # User loader callback for Flask-Login
    @login_manager.user_loader
    def load_user(user_id):
        from commute_permits.models import User
        return db.session.get(User, int(user_id))
    
    # Initialize error handlers
    init_error_handlers(app)
    
    # Register blueprints
    from commute_permits.controllers.approvals import approvals_bp
    from commute_permits.controllers.permits import permits_bp, public_bp
    from commute_permits.controllers.monitoring import monitoring_bp
    from commute_permits.controllers.employees import employees_bp
    
    app.register_blueprint(approvals_bp)
    app.register_blueprint(permits_bp)
    app.register_blueprint(public_bp)
    app.register_blueprint(monitoring_bp)
    app.register_blueprint(employees_bp)
    
    # Wire services and collaborators
    from commute_permits.services import init_services
    init_services(app)
    
    # Create tables
    with app.app_context():
        from commute_permits import models  # noqa: F401
        db.create_all()
    
    return app
