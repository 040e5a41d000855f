"""
SOW Engine
SQLAlchemy extension instance shared by all models.

Usage:
    from sow_engine.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
