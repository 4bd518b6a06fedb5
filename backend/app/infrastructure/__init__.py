"""
Infrastructure layer - external system integrations.
Keeps business logic clean from implementation details.
"""

from .mongodb import MongoConnectionManager, connect_mongo

__all__ = ['MongoConnectionManager', 'connect_mongo']
