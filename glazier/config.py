import os

DEFAULT_SECRET = 'change-me'

class BaseConfig:
    SECRET_KEY = os.getenv('SECRET_KEY', DEFAULT_SECRET)
    JWT_SECRET = os.getenv('JWT_SECRET') or SECRET_KEY
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///glazier.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    AUTH_COOKIE_NAME = 'auth-token'
    TOKEN_TTL_DAYS = int(os.getenv('TOKEN_TTL_DAYS', '7'))
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = False

class DevConfig(BaseConfig):
    DEBUG = True
    ENV = 'development'

class TestConfig(BaseConfig):
    TESTING = True
    ENV = 'testing'
    SECRET_KEY = 'test-secret'
    JWT_SECRET = 'test-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'

class ProdConfig(BaseConfig):
    DEBUG = False
    ENV = 'production'
    SESSION_COOKIE_SECURE = True

CONFIGS = {
    'development': DevConfig,
    'testing': TestConfig,
    'production': ProdConfig,
}
