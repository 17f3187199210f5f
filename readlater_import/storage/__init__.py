"""
Article persistence.

SQLite storage through peewee: owners, saved articles and per-site request
headers used when refreshing content on behalf of an owner.
"""

from .models import Owner as OwnerRow, SavedArticle, SiteHeader, database_proxy
from .store import ArticleStore

__all__ = [
    "ArticleStore",
    "OwnerRow",
    "SavedArticle",
    "SiteHeader",
    "database_proxy",
]
