import os
from dotenv import load_dotenv

load_dotenv()


def _database_url(*names, require_ssl=False):
    """Pick the first configured database URL and normalise it for SQLAlchemy."""
    db_url = None
    for name in names:
        db_url = os.getenv(name)
        if db_url:
            break
    if not db_url:
        return None
    # Heroku/Azure style postgres:// is not accepted by SQLAlchemy
    db_url = db_url.replace('postgres://', 'postgresql://')
    if require_ssl and db_url.startswith('postgresql') and 'sslmode=' not in db_url:
        db_url = f"{db_url}{'?' if '?' not in db_url else '&'}sslmode=require"
    return db_url


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY') or 'dev-key-for-testing'
    DEBUG = False
    TESTING = False
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SQLALCHEMY_DATABASE_URI = _database_url('DATABASE_URL', require_ssl=True)

    # JWT
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY') or SECRET_KEY
    JWT_ALGORITHM = os.getenv('JWT_ALGORITHM', 'HS256')
    JWT_PRIVATE_KEY_PATH = os.getenv('JWT_PRIVATE_KEY_PATH', 'mediatank/ssl/private_key.pem')
    JWT_PUBLIC_KEY_PATH = os.getenv('JWT_PUBLIC_KEY_PATH', 'mediatank/ssl/public_key.pem')

    # Email configuration
    SMTP_HOST = os.environ.get('SMTP_HOST')
    SMTP_PORT = int(os.environ.get('SMTP_PORT', 587))
    SMTP_USER = os.environ.get('SMTP_USER')
    SMTP_PASSWORD = os.environ.get('SMTP_PASSWORD')
    SENDER_EMAIL = os.environ.get('SENDER_EMAIL') or SMTP_USER
    SENDER_NAME = os.environ.get('SENDER_NAME', 'AI Media Tank')
    PROJECT_NAME = os.environ.get('PROJECT_NAME', 'AI Media Tank')

    # Payments
    STRIPE_SECRET_KEY = os.environ.get('STRIPE_SECRET_KEY')
    STRIPE_WEBHOOK_SECRET = os.environ.get('STRIPE_WEBHOOK_SECRET')
    STRIPE_BASIC_PRICE_ID = os.environ.get('STRIPE_BASIC_PRICE_ID', 'price_basic')
    STRIPE_ADVANCED_PRICE_ID = os.environ.get('STRIPE_ADVANCED_PRICE_ID', 'price_advanced')
    STRIPE_PREMIUM_PRICE_ID = os.environ.get('STRIPE_PREMIUM_PRICE_ID', 'price_premium')
    FRONTEND_URL = os.environ.get('FRONTEND_URL') or 'http://localhost:3000'

    # Blob storage
    AWS_S3_BUCKET = os.environ.get('AWS_S3_BUCKET', 'aimediatank-media')
    AWS_REGION = os.environ.get('AWS_REGION', 'us-east-1')

    # Timer-triggered jobs
    CRON_SECRET = os.environ.get('CRON_SECRET')

    # Content lifecycle
    SOLD_RETENTION_DAYS = int(os.environ.get('SOLD_RETENTION_DAYS', 10))
    REMINDER_THRESHOLDS = (7, 3, 1)
    NOTIFICATION_PAGE_SIZE = 20


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = _database_url('DEVELOPMENT_DATABASE_URL', 'DATABASE_URL') or 'sqlite:///mediatank.db'


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    JWT_SECRET_KEY = 'testing-jwt-secret-key-with-enough-length'
    JWT_ALGORITHM = 'HS256'
    CRON_SECRET = 'testing-cron-secret'
    STRIPE_SECRET_KEY = 'sk_test_dummy'
    STRIPE_WEBHOOK_SECRET = 'whsec_test_dummy'


class ProductionConfig(Config):
    SQLALCHEMY_DATABASE_URI = _database_url('PRODUCTION_DATABASE_URL', 'DATABASE_URL', require_ssl=True)


class StagingConfig(Config):
    SQLALCHEMY_DATABASE_URI = _database_url('DATABASE_URL', require_ssl=True)


config_by_name = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'staging': StagingConfig,
    'default': DevelopmentConfig
}
