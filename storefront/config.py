import os


class Config:
    DEBUG = os.getenv('FLASK_DEBUG', '0') == '1'
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-change-me')
    APP_VERSION = '1.0.0'

    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///storefront.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # lenient: any status from any status. strict: only PENDING -> PAID -> SHIPPED -> DELIVERED (+ CANCELLED)
    ORDER_STATUS_MODE = os.getenv('ORDER_STATUS_MODE', 'lenient').lower()

    SEED_DATA = os.getenv('SEED_DATA', '1') == '1'
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

    PASSWORD_MIN_LENGTH = int(os.getenv('PASSWORD_MIN_LENGTH', '8'))
    REVIEW_MIN_LENGTH = int(os.getenv('REVIEW_MIN_LENGTH', '10'))
    REVIEW_MAX_LENGTH = int(os.getenv('REVIEW_MAX_LENGTH', '1000'))
    MAX_QTY_PER_LINE = int(os.getenv('MAX_QTY_PER_LINE', '100'))

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
