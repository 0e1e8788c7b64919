# backend/wsgi.py
from storekeep import create_app

app = create_app()
