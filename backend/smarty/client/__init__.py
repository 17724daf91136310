"""
Client side of Smarty: HTTP gateway, state stores and local cache.
"""
from smarty.client.cache import JsonStateCache
from smarty.client.errors import ApiError, describe_error
from smarty.client.gateway import SmartyGateway
from smarty.client.session import ClientSession
from smarty.client.stores import CategoriesStore, ChatStore, NotesStore

__all__ = [
    "ApiError",
    "describe_error",
    "SmartyGateway",
    "JsonStateCache",
    "NotesStore",
    "CategoriesStore",
    "ChatStore",
    "ClientSession",
]
