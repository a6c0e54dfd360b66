# backend/wsgi.py
from proxybuy import create_app

app = create_app()
