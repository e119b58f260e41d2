import os


def _env_flag(name, default):
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class BaseConfig:
    SECRET_KEY = os.getenv('SECRET_KEY', 'change-me')
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = False
    SEED_SAMPLE_PROPOSAL = _env_flag('SEED_SAMPLE_PROPOSAL', 'true')
    DEFAULT_CURRENCY = os.getenv('DEFAULT_CURRENCY', 'USD')

class DevConfig(BaseConfig):
    DEBUG = True
    ENV = 'development'

class ProdConfig(BaseConfig):
    DEBUG = False
    ENV = 'production'
    SESSION_COOKIE_SECURE = True

class TestConfig(BaseConfig):
    TESTING = True
    ENV = 'testing'
    SEED_SAMPLE_PROPOSAL = False
