"""
Application configuration, read from the environment (and a local .env file).
"""
import os

from dotenv import load_dotenv
from sqlalchemy.engine import URL

load_dotenv()

INSECURE_SECRET = "dev-secret"


def _database_url():
    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return explicit
    url = URL.create(
        "mysql+pymysql",
        username=os.getenv("DB_USER"),
        password=os.getenv("DB_PASSWORD"),
        host=os.getenv("DB_HOST", "localhost"),
        database=os.getenv("DB_NAME"),
    )
    return url.render_as_string(hide_password=False)


class Config:
    SECRET_KEY = os.getenv("SESSION_SECRET", INSECURE_SECRET)

    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # requests wait for a free connection instead of failing when all 10 are busy
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_size": 10,
        "max_overflow": 0,
        "pool_timeout": 30,
        "pool_pre_ping": True,
    }

    DB_CONNECT_RETRIES = int(os.getenv("DB_CONNECT_RETRIES", 10))
    DB_CONNECT_DELAY = float(os.getenv("DB_CONNECT_DELAY", 2))

    DEFAULT_CATEGORY_NAME = "General"

    PORT = int(os.getenv("PORT", 3000))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_DIR = os.getenv("LOG_DIR")
