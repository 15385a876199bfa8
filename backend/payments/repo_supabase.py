"""
Supabase-backed batch lookup for checkout.

The `batches` table is owned by the dashboard CRUD layer; checkout only reads
it. Inactive batches are filtered in the query so that they are
indistinguishable from missing ones.
"""
from __future__ import annotations

from typing import Any, Optional

from .service import Batch

BATCHES_TABLE = "batches"


class SupabaseBatchRepo:
    def __init__(self, client: Any):
        self._client = client

    def get_active_batch(self, batch_id: str) -> Optional[Batch]:
        result = (
            self._client.table(BATCHES_TABLE)
            .select("id, name, fees, course_id, is_active")
            .eq("id", batch_id)
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        rows = getattr(result, "data", None) or []
        if not rows:
            return None
        row = rows[0]
        if row.get("is_active") is not True:
            return None
        course_id = row.get("course_id")
        return Batch(
            id=str(row.get("id")),
            name=str(row.get("name") or ""),
            fees=row.get("fees"),
            course_id=str(course_id) if course_id else None,
            is_active=True,
        )


__all__ = ["BATCHES_TABLE", "SupabaseBatchRepo"]
