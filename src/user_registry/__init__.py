"""
User Registry - CRUD backend for user records with a polling client
"""

__version__ = "1.0.0"
