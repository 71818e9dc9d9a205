import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Logging configuration
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Database configuration
# PostgreSQL holds the durable account records
DATABASE_URL = os.environ.get("DATABASE_URL")
# Redis holds sessions and password reset tokens
REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")

# Authentication & security
AUTH_SESSION_SECRET = os.environ.get("AUTH_SESSION_SECRET", "changeme-secret")
AUTH_SESSION_COOKIE = os.environ.get("AUTH_SESSION_COOKIE", "qid")
AUTH_SESSION_COOKIE_SECURE = os.environ.get("AUTH_SESSION_COOKIE_SECURE", "false").lower() == "true"
AUTH_SESSION_TTL_DAYS = int(os.environ.get("AUTH_SESSION_TTL_DAYS", "3650"))
AUTH_PEPPER = os.environ.get("AUTH_PEPPER", "")

# Email
EMAIL_SENDER = os.environ.get("EMAIL_SENDER", "no-reply@localhost")
EMAIL_BASE_URL = os.environ.get("EMAIL_BASE_URL", "http://localhost:3000")
SENDGRID_API_KEY = os.environ.get("SENDGRID_API_KEY")

# HTTP server
CORS_ORIGIN = os.environ.get("CORS_ORIGIN", "http://localhost:3000")
SERVER_HOST = os.environ.get("SERVER_HOST", "0.0.0.0")
SERVER_PORT = int(os.environ.get("SERVER_PORT", "4000"))

APP_TITLE = "Board API"
