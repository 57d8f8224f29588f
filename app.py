import logging
import os

from config import config
from flask import Flask, jsonify
from flask_cors import CORS
from flask_login import LoginManager
from flask_migrate import Migrate


def create_app(config_name=None):
    """Application factory pattern"""
    if config_name is None:
        config_name = os.getenv("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    # Initialize CORS for the practice frontend
    CORS(
        app,
        resources={
            r"/progress/*": {"origins": app.config["ALLOWED_ORIGINS"]},
        },
        supports_credentials=True,
    )

    # Initialize SQLAlchemy
    from models import db

    db.init_app(app)

    # Initialize Flask-Migrate
    migrate = Migrate(app, db)

    # Initialize Flask-Login; identity comes from the X-User-Id header
    from auth.utils import load_user_from_request

    login_manager = LoginManager()
    login_manager.init_app(app)
    login_manager.request_loader(load_user_from_request)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({"error": "Missing user identity"}), 401

    # Import all models to ensure they are registered with SQLAlchemy
    from models.progress_document import ProgressDocument

    # Register API blueprints
    from routes.progress import bp as progress_bp

    app.register_blueprint(progress_bp)

    # Home route
    @app.route("/")
    def home():
        return jsonify({"message": "Welcome to the vocabulary progress service!", "version": "1.0.0"})

    # Health check route
    @app.route("/health")
    def health_check():
        try:
            db.session.execute(db.text("SELECT 1"))
            return jsonify({"status": "healthy", "database": "connected"}), 200
        except Exception as e:
            app.logger.error(f"Health check failed: {e}")
            return jsonify({"status": "unhealthy", "error": str(e)}), 500

    return app


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app()
    app.run(debug=True, port=5001)
