# backend/wsgi.py
from sundus import create_app

app = create_app()
