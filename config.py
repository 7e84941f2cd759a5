import os
import mysql.connector
from mysql.connector import pooling
from dotenv import load_dotenv

load_dotenv()

class Config:
    SECRET_KEY = os.getenv('SECRET_KEY')
    MYSQL_HOST = os.getenv('MYSQL_HOST')
    MYSQL_USER = os.getenv('MYSQL_USER')
    MYSQL_PASSWORD = os.getenv('MYSQL_PASSWORD')
    MYSQL_DATABASE = os.getenv('MYSQL_DATABASE', 'edufinx_db')
    MYSQL_POOL_SIZE = int(os.getenv('MYSQL_POOL_SIZE', '5'))

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    DEFAULT_CURRENCY = os.getenv('DEFAULT_CURRENCY', 'INR')
    MIN_PASSWORD_LENGTH = 8
    # One year; preferences have no real expiry
    PREFERENCE_COOKIE_MAX_AGE = 365 * 24 * 60 * 60

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    @staticmethod
    def sqlalchemy_uri():
        return "mysql+mysqlconnector://{}:{}@{}/{}".format(
            Config.MYSQL_USER, Config.MYSQL_PASSWORD, Config.MYSQL_HOST, Config.MYSQL_DATABASE
        )

    @staticmethod
    def init_db(app):
        app.db_pool = mysql.connector.pooling.MySQLConnectionPool(
            pool_name="edufinx_pool",
            pool_size=Config.MYSQL_POOL_SIZE,
            host=Config.MYSQL_HOST,
            user=Config.MYSQL_USER,
            password=Config.MYSQL_PASSWORD,
            database=Config.MYSQL_DATABASE
        )
