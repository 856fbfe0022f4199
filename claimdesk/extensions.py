"""Shared Flask extension instances.

Kept in their own module so models, services and the app factory can import
`db` without circular imports.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
