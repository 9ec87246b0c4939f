from __future__ import annotations

import json
import re
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

from ..core.exceptions import ConcurrentModificationError
from .connection import DatabaseConnection
from .mysql_base import db_cursor, fetchall, fetchone

_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")
_OPERATORS = {"==", "!=", ">=", "<=", ">", "<", "in", "array-contains"}


@dataclass(frozen=True)
class Filter:
    """A single ``where`` clause over a JSON document field."""

    field: str
    op: str
    value: Any

    def __post_init__(self):
        if not _FIELD_RE.match(self.field):
            raise ValueError(f"Invalid field path: {self.field!r}")
        if self.op not in _OPERATORS:
            raise ValueError(f"Unsupported operator: {self.op!r}")


@dataclass(frozen=True)
class StoredDocument:
    doc_id: str
    version: int
    data: Dict[str, Any]


class DocumentStore(Protocol):
    def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        raise NotImplementedError

    def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> Sequence[StoredDocument]:
        raise NotImplementedError

    def create(self, collection: str, data: Dict[str, Any], *, doc_id: Optional[str] = None) -> str:
        raise NotImplementedError

    def update(
        self,
        collection: str,
        doc_id: str,
        patch: Dict[str, Any],
        *,
        expected_version: Optional[int] = None,
    ) -> int:
        """Merge ``patch`` into the stored body and return the new version."""

        raise NotImplementedError

    def delete(self, collection: str, doc_id: str) -> bool:
        raise NotImplementedError


def _json_path(field: str) -> str:
    return "$." + field


class MySQLDocumentStore(DocumentStore):
    """Tenant-scoped JSON documents in a single ``documents`` table."""

    def __init__(self, conn_factory: DatabaseConnection, *, tenant_id: str):
        self._conn_factory = conn_factory
        self._tenant_id = tenant_id

    @staticmethod
    def _to_document(row: Dict[str, Any]) -> StoredDocument:
        body = row["body"]
        if isinstance(body, (bytes, bytearray)):
            body = body.decode("utf-8")
        if isinstance(body, str):
            body = json.loads(body)
        return StoredDocument(doc_id=str(row["doc_id"]), version=int(row["version"]), data=dict(body or {}))

    def get(self, collection: str, doc_id: str) -> Optional[StoredDocument]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT doc_id, version, body
                FROM documents
                WHERE tenant_id=%s AND collection=%s AND doc_id=%s
                """,
                (self._tenant_id, collection, doc_id),
            )
            r = fetchone(cur)
            return self._to_document(r) if r else None

    def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        *,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> Sequence[StoredDocument]:
        clauses = ["tenant_id=%s", "collection=%s"]
        params: List[Any] = [self._tenant_id, collection]

        for f in filters:
            path = _json_path(f.field)
            if f.op == "array-contains":
                clauses.append("JSON_CONTAINS(JSON_EXTRACT(body, %s), CAST(%s AS JSON))")
                params.extend([path, json.dumps(f.value)])
            elif f.op == "in":
                values = list(f.value)
                if not values:
                    return []
                placeholders = ",".join(["CAST(%s AS JSON)"] * len(values))
                clauses.append(f"JSON_EXTRACT(body, %s) IN ({placeholders})")
                params.append(path)
                params.extend(json.dumps(v) for v in values)
            else:
                op = "=" if f.op == "==" else f.op
                clauses.append(f"JSON_EXTRACT(body, %s) {op} CAST(%s AS JSON)")
                params.extend([path, json.dumps(f.value)])

        sql = f"SELECT doc_id, version, body FROM documents WHERE {' AND '.join(clauses)}"
        if order_by:
            if not _FIELD_RE.match(order_by):
                raise ValueError(f"Invalid order_by field: {order_by!r}")
            sql += f" ORDER BY JSON_EXTRACT(body, '{_json_path(order_by)}') {'DESC' if descending else 'ASC'}"
        if limit:
            sql += " LIMIT %s"
            params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [self._to_document(r) for r in fetchall(cur)]

    def create(self, collection: str, data: Dict[str, Any], *, doc_id: Optional[str] = None) -> str:
        doc_id = doc_id or uuid.uuid4().hex
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO documents(tenant_id, collection, doc_id, version, body)
                VALUES(%s,%s,%s,1,%s)
                """,
                (self._tenant_id, collection, doc_id, json.dumps(data)),
            )
        return doc_id

    def update(
        self,
        collection: str,
        doc_id: str,
        patch: Dict[str, Any],
        *,
        expected_version: Optional[int] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT version, body
                FROM documents
                WHERE tenant_id=%s AND collection=%s AND doc_id=%s
                FOR UPDATE
                """,
                (self._tenant_id, collection, doc_id),
            )
            r = fetchone(cur)
            if not r:
                raise KeyError(f"{collection}/{doc_id} does not exist")

            current = self._to_document({"doc_id": doc_id, **r})
            if expected_version is not None and current.version != int(expected_version):
                raise ConcurrentModificationError("The record was changed by another request, please retry")

            body = {**current.data, **patch}
            cur.execute(
                """
                UPDATE documents
                SET body=%s, version=version+1
                WHERE tenant_id=%s AND collection=%s AND doc_id=%s AND version=%s
                """,
                (json.dumps(body), self._tenant_id, collection, doc_id, current.version),
            )
            if cur.rowcount == 0:
                raise ConcurrentModificationError("The record was changed by another request, please retry")
            return current.version + 1

    def delete(self, collection: str, doc_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM documents WHERE tenant_id=%s AND collection=%s AND doc_id=%s",
                (self._tenant_id, collection, doc_id),
            )
            return cur.rowcount > 0
