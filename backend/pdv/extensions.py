# Overview: Flask extension instances shared by the app factory and the persistent storage backend.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()
