# backend/wsgi.py
from posibel import create_app

app = create_app()
