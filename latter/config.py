import os

basedir = os.path.abspath(os.path.dirname(__file__))


def _env_bool(name, default=False):
    raw = os.environ.get(name)
    if raw is None:
        return default
    return str(raw).strip().lower() in {'1', 'true', 'yes', 'on'}


def _env_int(name, default):
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def _normalize_database_url(raw_url):
    if not raw_url:
        return raw_url
    if raw_url.startswith('postgres://'):
        return raw_url.replace('postgres://', 'postgresql://', 1)
    return raw_url


class BaseConfig:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-prod')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_EXPIRATION_HOURS = _env_int('JWT_EXPIRATION_HOURS', 24)
    CORS_ALLOWED_ORIGINS = os.environ.get('CORS_ALLOWED_ORIGINS', '*')
    SOCKETIO_ASYNC_MODE = os.environ.get('SOCKETIO_ASYNC_MODE', 'threading')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    ADMIN_NAME = 'Admin'
    ADMIN_EMAIL = os.environ.get('ADMIN_EMAIL', 'admin@example.org')

    # smtp, sendgrid, memory or log
    MAIL_BACKEND = os.environ.get('MAIL_BACKEND', 'log')
    MAIL_DEFAULT_SENDER = os.environ.get('MAIL_DEFAULT_SENDER', 'ladder@example.org')
    MAIL_SMTP_HOST = os.environ.get('MAIL_SMTP_HOST', 'localhost')
    MAIL_SMTP_PORT = _env_int('MAIL_SMTP_PORT', 25)
    MAIL_SMTP_USERNAME = os.environ.get('MAIL_SMTP_USERNAME', '')
    MAIL_SMTP_PASSWORD = os.environ.get('MAIL_SMTP_PASSWORD', '')
    MAIL_SMTP_USE_TLS = _env_bool('MAIL_SMTP_USE_TLS', False)
    MAIL_TIMEOUT_SECONDS = _env_int('MAIL_TIMEOUT_SECONDS', 10)
    SENDGRID_API_KEY = os.environ.get('SENDGRID_API_KEY', '')


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = _normalize_database_url(
        os.environ.get(
            'DATABASE_URL',
            'sqlite:///' + os.path.join(basedir, '..', 'latter_dev.db')
        )
    )


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    MAIL_BACKEND = 'memory'


class ProductionConfig(BaseConfig):
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = _normalize_database_url(os.environ.get('DATABASE_URL'))
    # SendGrid's SMTP relay unless a different backend is configured
    MAIL_BACKEND = os.environ.get('MAIL_BACKEND', 'smtp')
    MAIL_SMTP_HOST = os.environ.get('MAIL_SMTP_HOST', 'smtp.sendgrid.net')
    MAIL_SMTP_USERNAME = os.environ.get('MAIL_SMTP_USERNAME', os.environ.get('SENDGRID_USERNAME', ''))
    MAIL_SMTP_PASSWORD = os.environ.get('MAIL_SMTP_PASSWORD', os.environ.get('SENDGRID_PASSWORD', ''))


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
}
