import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    """Base configuration class"""

    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-in-production")
    FLASK_ENV = os.getenv("FLASK_ENV", "development")
    DEBUG = os.getenv("DEBUG", "True") == "True"

    # SQLAlchemy configuration
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URI", "sqlite:///progress.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Comma-separated list of frontend origins allowed by CORS
    ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "http://localhost:5173").split(",")

    # Replays of a read-modify-write after a concurrent write conflict
    PROGRESS_WRITE_RETRIES = int(os.getenv("PROGRESS_WRITE_RETRIES", "3"))

    # Reject attempts for lessons/vocabulary not present in the 'lessons' collection
    REQUIRE_KNOWN_LESSONS = os.getenv("REQUIRE_KNOWN_LESSONS", "False") == "True"


class DevelopmentConfig(Config):
    """Development environment configuration"""

    DEBUG = True


class ProductionConfig(Config):
    """Production environment configuration"""

    DEBUG = False

    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_size": 20,
        "max_overflow": 10,
        "pool_recycle": 3600,
        "pool_pre_ping": True,
    }


class TestingConfig(Config):
    """Testing environment configuration"""

    TESTING = True
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    REQUIRE_KNOWN_LESSONS = False


config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
