import os

from config import db_config_from_env, env_flag, env_list

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

JWT_SECRET = os.getenv("JWT_SECRET", "")
JWT_EXPIRES_IN = os.getenv("JWT_EXPIRES_IN", "1h")

DB_CONFIG = db_config_from_env()

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = env_list("CORS_ORIGINS", "*")

AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "0")
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")

# no default password outside development
SEED_ADMIN_USERNAME = os.getenv("SEED_ADMIN_USERNAME")
SEED_ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD")
