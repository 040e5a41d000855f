"""
WSGI and Flask-Migrate / Alembic entry point.

Usage:
    flask --app wsgi db upgrade
    gunicorn wsgi:app
"""

from sow_engine import create_app

app = create_app()
