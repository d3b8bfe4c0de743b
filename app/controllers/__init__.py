"""
Controllers - MVC2 Pattern
All controllers (routes) organized by layer
"""
from app.controllers import database_controller

__all__ = [
    "database_controller",
]
