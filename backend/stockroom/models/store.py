from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class InventoryDocument(db.Model):
    """
    The whole inventory as one JSON tree (items, bills, users,
    notifications, secure).

    There is exactly one row. Every mutation reads the full tree, changes it
    in memory and writes the full tree back.

    ``version`` is the SQLAlchemy version counter: an UPDATE issued from a
    stale read matches zero rows and raises StaleDataError, which
    ``services.concurrency.run_with_retry`` turns into a fresh
    read-modify-write.
    """
    __tablename__ = "inventory_documents"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    tree = db.Column(db.JSON, nullable=False, default=dict)
    version = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    __mapper_args__ = {"version_id_col": version}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "version": self.version,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
