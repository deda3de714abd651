# learnmode_app/config/config.py
# -*- coding: utf-8 -*-
import os
from dotenv import load_dotenv

# Project root is two levels up from this file (learnmode_app/config/).
project_root_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))

# conftest.py sets FLASK_ENV=testing; pick up .env.test when it exists.
if os.environ.get('FLASK_ENV') == 'testing':
    test_dotenv_path = os.path.join(project_root_dir, '.env.test')
    if os.path.exists(test_dotenv_path):
        load_dotenv(dotenv_path=test_dotenv_path, override=True)

basedir = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
dotenv_path = os.path.join(project_root_dir, '.env')

if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path=dotenv_path)


class Config:
    # --- Flask App ---
    SECRET_KEY = os.environ.get('SECRET_KEY', 'default-insecure-secret-key')
    FLASK_ENV = os.environ.get('FLASK_ENV', 'production')
    DEBUG = FLASK_ENV == 'development'
    TESTING = False

    # --- Logging ---
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
    LOG_DIR = os.environ.get('LOG_DIR', os.path.join(project_root_dir, 'logs'))
    LOG_FILE = os.path.join(LOG_DIR, 'app.log')
    LOG_JSON_FILE = os.path.join(LOG_DIR, 'app.json')

    # --- OpenAI Assistants ---
    # The key itself is re-read from the environment on every provider call;
    # this copy only exists for the startup check.
    OPENAI_API_KEY = os.environ.get('OPENAI_API_KEY')
    OPENAI_ASSISTANT_MODEL = os.environ.get('OPENAI_ASSISTANT_MODEL', 'gpt-4o-mini')
    OPENAI_REQUEST_TIMEOUT = float(os.environ.get('OPENAI_REQUEST_TIMEOUT', 60.0))

    # --- Redis (durable session store) ---
    REDIS_URL = os.environ.get('REDIS_URL')
    SESSION_TTL_SECONDS = int(os.environ.get('SESSION_TTL_SECONDS', 86400))  # 24 hours
    REGISTRY_LOCK_TIMEOUT_SECONDS = float(os.environ.get('REGISTRY_LOCK_TIMEOUT_SECONDS', 60))
    REGISTRY_LOCK_WAIT_SECONDS = float(os.environ.get('REGISTRY_LOCK_WAIT_SECONDS', 30))

    # --- Run polling ---
    RUN_POLL_INTERVAL_SECONDS = float(os.environ.get('RUN_POLL_INTERVAL_SECONDS', 2))
    RUN_POLL_BACKOFF_FACTOR = float(os.environ.get('RUN_POLL_BACKOFF_FACTOR', 1.0))
    RUN_POLL_MAX_INTERVAL_SECONDS = float(os.environ.get('RUN_POLL_MAX_INTERVAL_SECONDS', 10))
    RUN_TIMEOUT_SECONDS = float(os.environ.get('RUN_TIMEOUT_SECONDS', 120))
    # 0 means no attempt cap; the wall-clock timeout still applies.
    RUN_MAX_POLL_ATTEMPTS = int(os.environ.get('RUN_MAX_POLL_ATTEMPTS', 0))

    # Keys that must be present for the service to start.
    REQUIRED_SETTINGS = ('OPENAI_API_KEY', 'REDIS_URL')
