import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev")
    SQLALCHEMY_DATABASE_URI = os.getenv("SQLALCHEMY_DATABASE_URI", "sqlite:///career_guidance.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    JWT_SECRET = os.getenv("JWT_SECRET", "fallback-secret-key")
    JWT_EXPIRES_DAYS = int(os.getenv("JWT_EXPIRES_DAYS", "7"))
    ENV = os.getenv("ENV", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    RATE_LIMIT_PER_MINUTE = int(os.getenv("RATE_LIMIT_PER_MINUTE", "120"))
    # accounts created by `flask seed-users`
    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@platform.com")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")
    DEMO_EMAIL = os.getenv("DEMO_EMAIL", "demo@student.com")
    DEMO_PASSWORD = os.getenv("DEMO_PASSWORD", "demo123")

class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET = "test-secret-key-with-enough-length-for-hs256"
    ENV = "testing"
