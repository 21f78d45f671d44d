import os

from config import db_config_from_env, env_list

SECRET_KEY = "test-secret"

JWT_SECRET = "test-jwt-secret"
JWT_EXPIRES_IN = "1h"

DB_CONFIG = db_config_from_env(default_database="school_attendance_test")

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")
CORS_ORIGINS = env_list("CORS_ORIGINS", "*")

AUTO_INIT_DB = False
AUTO_SEED_DB = False

SEED_ADMIN_USERNAME = None
SEED_ADMIN_PASSWORD = None
