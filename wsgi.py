"""
wsgi.py
───────
Production entry point, e.g. `gunicorn wsgi:app`. Serves the JSON store at
$GYM_STORE_HOME/$GYM_STORE_FILE.
"""

import sys
import os

sys.path.insert(0, os.path.dirname(__file__))

from api.server import create_app
from config import settings
from gymactivity import JsonDocumentStore, StoreRepository

app = create_app(StoreRepository(JsonDocumentStore(settings.STORE_FILE)))

if __name__ == "__main__":
    app.run(port=settings.PORT)
