import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY") or "sitedesk-dev-secret"

    # MongoDB
    MONGO_URI = os.environ.get("MONGO_URI", "mongodb://localhost:27017/construction-management")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Cloudflare R2 (S3 compatible)
    R2_ENDPOINT = (os.environ.get("R2_ENDPOINT") or "").strip()
    R2_ACCESS_KEY_ID = (os.environ.get("R2_ACCESS_KEY_ID") or "").strip()
    R2_SECRET_ACCESS_KEY = (os.environ.get("R2_SECRET_ACCESS_KEY") or "").strip()
    R2_BUCKET_NAME = os.environ.get("R2_BUCKET_NAME", "")
    R2_PUBLIC_URL = (os.environ.get("R2_PUBLIC_URL") or "").rstrip("/")
    R2_TIMEOUT_SECONDS = float(os.environ.get("R2_TIMEOUT_SECONDS", "10"))

    UPLOAD_MAX_MB = int(os.environ.get("UPLOAD_MAX_MB", "10"))


class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")


class TestingConfig(Config):
    TESTING = True
    MONGO_URI = "mongodb://localhost:27017/construction-management-test"
    R2_BUCKET_NAME = "test-bucket"
    R2_PUBLIC_URL = "https://files.example.com"
