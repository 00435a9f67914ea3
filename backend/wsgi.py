# backend/wsgi.py
# FLASK_APP target for the CLI and WSGI servers (e.g. gunicorn wsgi:app).
from pdv import create_app

app = create_app()
