# estate_payments/config.py

import os
import logging

# --- Database Configuration ---
DATA_DIR = os.environ.get("ESTATE_PAYMENTS_DATA_DIR", os.path.join(os.getcwd(), "data"))
DB_NAME = "estate_payments.db"
DATABASE_PATH = os.environ.get("ESTATE_PAYMENTS_DB_PATH", os.path.join(DATA_DIR, DB_NAME))

# Record store namespace holding the whole payment schedule collection
PAYMENT_SCHEDULES_KEY = "estatemanager_payment_schedules"

# --- Logging Configuration ---
LOGS_DIR = os.environ.get("ESTATE_PAYMENTS_LOG_DIR", os.path.join(os.getcwd(), "logs"))
LOG_FILE_NAME = "estate_payments.log"
LOG_FILE_PATH = os.path.join(LOGS_DIR, LOG_FILE_NAME)
LOG_LEVEL = getattr(logging, os.environ.get("ESTATE_PAYMENTS_LOG_LEVEL", "INFO").upper(), logging.INFO)
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s'

LOGGING_CONFIG = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': LOG_FORMAT,
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard',
            'level': LOG_LEVEL,
        },
        'file': {
            'class': 'logging.handlers.RotatingFileHandler',
            'formatter': 'standard',
            'filename': LOG_FILE_PATH,
            'maxBytes': 1024*1024*5,  # 5 MB
            'backupCount': 5,
            'level': logging.INFO,
            'encoding': 'utf-8',
        },
    },
    'root': {
        'handlers': ['console', 'file'],
        'level': LOG_LEVEL,
    },
}
