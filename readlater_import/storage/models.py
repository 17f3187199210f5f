"""Peewee ORM models for the article database."""

from __future__ import annotations

import datetime as _dt

import peewee

# A proxy that will be initialised with the concrete database instance at runtime.
database_proxy: peewee.DatabaseProxy = peewee.DatabaseProxy()


def _utcnow() -> _dt.datetime:
    """Naive UTC now; SQLite DateTimeField round-trips naive values only."""
    return _dt.datetime.now(_dt.timezone.utc).replace(tzinfo=None)


class BaseModel(peewee.Model):
    """Base Peewee model bound to the lazily initialised database proxy."""

    class Meta:
        database = database_proxy
        legacy_table_names = False


class Owner(BaseModel):
    id = peewee.AutoField()
    username = peewee.TextField(unique=True)
    created_at = peewee.DateTimeField(default=_utcnow)

    class Meta:
        table_name = "owners"


class SavedArticle(BaseModel):
    """One saved article. ``(owner, normalized_url)`` is unique."""

    id = peewee.AutoField()
    owner = peewee.ForeignKeyField(Owner, backref="articles", on_delete="CASCADE")
    url = peewee.TextField()
    normalized_url = peewee.TextField()
    url_hash = peewee.CharField(max_length=40)
    title = peewee.TextField()
    content = peewee.TextField(default="")
    tags_json = peewee.TextField(default="[]")
    is_archived = peewee.BooleanField(default=False)
    is_starred = peewee.BooleanField(default=False)
    language = peewee.TextField(null=True)
    preview_picture = peewee.TextField(null=True)
    source_format = peewee.TextField()
    created_at = peewee.DateTimeField(default=_utcnow)
    imported_at = peewee.DateTimeField(default=_utcnow)

    class Meta:
        table_name = "saved_articles"
        indexes = (
            (("owner", "normalized_url"), True),
            (("owner", "url_hash"), False),
        )


class SiteHeader(BaseModel):
    """Request header sent when fetching pages of a host on behalf of an owner."""

    id = peewee.AutoField()
    owner = peewee.ForeignKeyField(Owner, backref="site_headers", on_delete="CASCADE")
    host = peewee.TextField()
    name = peewee.TextField()
    value = peewee.TextField()

    class Meta:
        table_name = "site_headers"
        indexes = ((("owner", "host", "name"), True),)


ALL_MODELS = [Owner, SavedArticle, SiteHeader]
