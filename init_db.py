from flask import Flask
from config import Config
from models import db

def init_db(database_uri=None):
    """Create every table declared in models.py; existing tables are left alone."""
    app = Flask(__name__)
    app.config['SQLALCHEMY_DATABASE_URI'] = database_uri or Config.sqlalchemy_uri()
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    db.init_app(app)
    with app.app_context():
        db.create_all()
        tables = sorted(db.metadata.tables)
    return tables

if __name__ == "__main__":
    for name in init_db():
        print(f"ensured table {name}")
