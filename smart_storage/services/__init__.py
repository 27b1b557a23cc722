"""
Services package for Smart Storage.

Operation layer composed over the persistence layer.
"""

from smart_storage.services.items import ItemService

__all__ = ["ItemService"]
