"""
Database module initialization
"""

from .mongodb import MongoStore

__all__ = ["MongoStore"]
