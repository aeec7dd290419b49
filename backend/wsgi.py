# backend/wsgi.py
from kickvault import create_app

app = create_app()
