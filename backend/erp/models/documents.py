from __future__ import annotations

from ..extensions import db


class Document(db.Model):
    """
    One record of the path-addressed document store.

    A record lives at `<collection>/<key>`; nested collections such as
    `products/<id>/history` are stored with the full path as `collection`.
    The JSON body is the record exactly as clients see it (camelCase
    fields, its own key duplicated in `id`).
    """
    __tablename__ = "documents"
    __table_args__ = (
        db.UniqueConstraint("collection", "key", name="uq_documents_collection_key"),
        db.Index("ix_documents_collection", "collection"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    collection = db.Column(db.String(255), nullable=False)
    key = db.Column(db.String(64), nullable=False)
    data = db.Column(db.JSON, nullable=False, default=dict)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

