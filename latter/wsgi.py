"""WSGI entrypoint used by Gunicorn."""
import os

from latter.app import create_app
from latter.config import _env_bool
from latter.services.players import bootstrap_admin

config_name = os.environ.get('FLASK_ENV', 'production')
app = create_app(config_name)

if _env_bool('AUTO_SETUP_ADMIN', False):
    with app.app_context():
        admin = bootstrap_admin()
        if admin:
            print(f"Created admin player {admin.email}")
