import os

from config import db_config_from_env, env_flag, env_list

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

JWT_SECRET = os.getenv("JWT_SECRET", "dev-jwt-secret")
JWT_EXPIRES_IN = os.getenv("JWT_EXPIRES_IN", "1h")

DB_CONFIG = db_config_from_env()

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
CORS_ORIGINS = env_list("CORS_ORIGINS", "*")

# If enabled, the app applies schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "1")
# Optional: also seed roles and the bootstrap admin on startup
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")

SEED_ADMIN_USERNAME = os.getenv("SEED_ADMIN_USERNAME", "admin")
SEED_ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "admin123")
