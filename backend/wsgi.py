# backend/wsgi.py
from cherry_pos import create_app

app = create_app()
