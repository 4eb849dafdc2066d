# backend/wsgi.py
from bvolt import create_app

app = create_app()
