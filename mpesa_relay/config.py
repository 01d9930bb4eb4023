import os
from dotenv import load_dotenv
from sqlalchemy.engine import URL

from mpesa_relay.errors.exceptions import StartupConfigError

load_dotenv()

# Settings that must be present before the app is allowed to start
REQUIRED_SETTINGS = [
    'DB_SERVER',
    'DB_NAME',
    'DB_USER',
    'DB_PASSWORD',
    'CONSUMER_KEY',
    'CONSUMER_SECRET',
    'SHORT_CODE',
    'PASSKEY',
    'CALLBACK_URL',
]


def build_database_uri(server, database, user, password):
    """
    Build the SQLAlchemy URL for the Azure SQL database

    Connections are encrypted, the server certificate is verified and
    the login timeout is 30 seconds.
    """
    if not all([server, database, user, password]):
        return None

    return URL.create(
        'mssql+pyodbc',
        username=user,
        password=password,
        host=server,
        database=database,
        query={
            'driver': 'ODBC Driver 18 for SQL Server',
            'Encrypt': 'yes',
            'TrustServerCertificate': 'no',
            'Connection Timeout': '30',
        },
    ).render_as_string(hide_password=False)


class Config:
    """Base configuration"""
    DB_SERVER = os.getenv('DB_SERVER')
    DB_NAME = os.getenv('DB_NAME')
    DB_USER = os.getenv('DB_USER')
    DB_PASSWORD = os.getenv('DB_PASSWORD')

    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL') or build_database_uri(
        DB_SERVER, DB_NAME, DB_USER, DB_PASSWORD
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    # M-Pesa (Daraja) credentials
    CONSUMER_KEY = os.getenv('CONSUMER_KEY')
    CONSUMER_SECRET = os.getenv('CONSUMER_SECRET')
    SHORT_CODE = os.getenv('SHORT_CODE')
    PASSKEY = os.getenv('PASSKEY')
    CALLBACK_URL = os.getenv('CALLBACK_URL')
    MPESA_ENV = os.getenv('MPESA_ENV', 'production')
    MPESA_TIMEOUT = float(os.getenv('MPESA_TIMEOUT', '30'))

    PORT = int(os.getenv('PORT', '5000'))
    LOG_DIR = os.getenv('LOG_DIR', 'logs')
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')

    # Refuse to start when the database is unreachable
    VERIFY_DATABASE_ON_STARTUP = True


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False
    MPESA_ENV = os.getenv('MPESA_ENV', 'sandbox')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {}

    DB_SERVER = 'localhost'
    DB_NAME = 'mpesa_relay_test'
    DB_USER = 'test'
    DB_PASSWORD = 'test'

    CONSUMER_KEY = 'test_consumer_key'
    CONSUMER_SECRET = 'test_consumer_secret'
    SHORT_CODE = '174379'
    PASSKEY = 'test_passkey'
    CALLBACK_URL = 'https://example.com/callback'
    MPESA_ENV = 'sandbox'

    VERIFY_DATABASE_ON_STARTUP = False


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def validate_config(settings) -> None:
    """
    Make sure every required setting has a value

    Args:
        settings: Mapping of loaded settings (usually app.config)

    Raises:
        StartupConfigError: Listing all missing settings
    """
    missing = [name for name in REQUIRED_SETTINGS if not settings.get(name)]

    if missing:
        raise StartupConfigError(
            f'Missing required environment variable(s): {", ".join(missing)}'
        )

    if not settings.get('SQLALCHEMY_DATABASE_URI'):
        raise StartupConfigError('Database connection URL could not be built')
