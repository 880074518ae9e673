"""
services/data_client.py

- 원격 관계형 저장소에 대한 쿼리 빌더 클라이언트
  client.table("grades").select().in_("studentid", ids).order("created_at").execute()
- SQLAlchemy Core 테이블(Base.metadata)에 대해 실행, 결과는 DB 컬럼명 그대로의 dict
- 모든 DB 오류는 DataStoreError로 변환 (code: 23505, 42501, PGRST116, 42703, XX000)
- for_owner(owner_id)로 만든 클라이언트는 행 단위 접근 정책(소유자 필터)을 적용
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy import select as sa_select, insert as sa_insert, update as sa_update, delete as sa_delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from database.db import Base, SessionLocal, new_id
from models import users, students, tests, grades, grade_templates  # noqa: F401  (Base.metadata에 테이블 등록)

logger = logging.getLogger(__name__)

# 소유자 컬럼(user_id)으로 직접 범위가 정해지는 테이블
OWNED_TABLES = {"students", "tests", "grade_templates"}


class DataStoreError(Exception):
    """원격 저장소 호출 실패"""

    def __init__(self, message: str, code: str = "XX000", details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details

    def __repr__(self):
        return f"DataStoreError(code={self.code!r}, message={self.message!r})"


@dataclass
class QueryResult:
    data: Any
    count: Optional[int] = None


class TableQuery:
    """한 테이블에 대한 쿼리 한 건. 빌더 메서드는 self를 반환"""

    def __init__(self, client: "DataClient", table_name: str):
        if table_name not in Base.metadata.tables:
            raise DataStoreError(f"relation \"{table_name}\" does not exist", code="42P01")
        self.client = client
        self.table_name = table_name
        self.table = Base.metadata.tables[table_name]
        self.action = "select"
        self.columns: Sequence[str] = ()
        self.values: Union[Dict[str, Any], List[Dict[str, Any]], None] = None
        self.filters: List[tuple] = []
        self.ordering: List[tuple] = []
        self.expect_single = False

    # ==========================================================
    # [1단계] 빌더
    # ==========================================================
    def select(self, columns: str = "*") -> "TableQuery":
        # insert/update 뒤의 select()는 결과 행을 돌려받겠다는 의미 (항상 돌려줌)
        if self.action == "select" and columns != "*":
            self.columns = [c.strip() for c in columns.split(",") if c.strip()]
        return self

    def insert(self, rows: Union[Dict[str, Any], List[Dict[str, Any]]]) -> "TableQuery":
        self.action = "insert"
        self.values = rows if isinstance(rows, list) else [rows]
        return self

    def update(self, values: Dict[str, Any]) -> "TableQuery":
        self.action = "update"
        self.values = dict(values)
        return self

    def delete(self) -> "TableQuery":
        self.action = "delete"
        return self

    def eq(self, column: str, value: Any) -> "TableQuery":
        self.filters.append(("eq", column, value))
        return self

    def in_(self, column: str, values: Sequence[Any]) -> "TableQuery":
        self.filters.append(("in", column, list(values)))
        return self

    def order(self, column: str, ascending: bool = True) -> "TableQuery":
        self.ordering.append((column, ascending))
        return self

    def single(self) -> "TableQuery":
        self.expect_single = True
        return self

    def execute(self) -> QueryResult:
        return self.client.execute(self)

    async def execute_async(self) -> QueryResult:
        # 저장소 호출은 블로킹 I/O → 워커 스레드에서 실행하고 이벤트 루프는 양보
        return await asyncio.to_thread(self.execute)

    # ==========================================================
    # [2단계] SQL 조립
    # ==========================================================
    def column(self, name: str):
        if name not in self.table.c:
            raise DataStoreError(
                f"column {self.table_name}.{name} does not exist", code="42703"
            )
        return self.table.c[name]

    def where_clauses(self) -> list:
        clauses = []
        for op, column, value in self.filters:
            col = self.column(column)
            clauses.append(col == value if op == "eq" else col.in_(value))
        clauses.extend(self.client.policy_clauses(self.table_name))
        return clauses


class DataClient:
    def __init__(self, session_factory=SessionLocal, owner_id: Optional[str] = None):
        self.session_factory = session_factory
        self.owner_id = owner_id

    def table(self, name: str) -> TableQuery:
        return TableQuery(self, name)

    def for_owner(self, owner_id: str) -> "DataClient":
        """소유자 범위가 적용된 클라이언트 (행 단위 접근 정책)"""
        return DataClient(self.session_factory, owner_id=owner_id)

    # ==========================================================
    # [공통] 행 단위 접근 정책
    # ==========================================================
    def policy_clauses(self, table_name: str) -> list:
        if self.owner_id is None:
            return []
        tables = Base.metadata.tables
        if table_name in OWNED_TABLES:
            return [tables[table_name].c.user_id == self.owner_id]
        if table_name == "grades":
            students = tables["students"]
            owned = sa_select(students.c.id).where(students.c.user_id == self.owner_id)
            return [tables["grades"].c.studentid.in_(owned)]
        return []

    def _check_insert_policy(self, session, query: TableQuery, rows: List[Dict[str, Any]]):
        if self.owner_id is None:
            return
        if query.table_name in OWNED_TABLES:
            if any(row.get("user_id") != self.owner_id for row in rows):
                raise DataStoreError(
                    f"new row violates row-level security policy for table \"{query.table_name}\"",
                    code="42501",
                )
        elif query.table_name == "grades":
            students = Base.metadata.tables["students"]
            student_ids = {row.get("studentid") for row in rows}
            owned = session.execute(
                sa_select(students.c.id)
                .where(students.c.id.in_(list(student_ids)))
                .where(students.c.user_id == self.owner_id)
            ).scalars().all()
            if set(owned) != student_ids:
                raise DataStoreError(
                    "new row violates row-level security policy for table \"grades\"",
                    code="42501",
                )

    # ==========================================================
    # [실행] 쿼리 한 건 = 트랜잭션 한 건
    # ==========================================================
    def execute(self, query: TableQuery) -> QueryResult:
        try:
            with self.session_factory() as session:
                with session.begin():
                    rows = self._dispatch(session, query)
        except DataStoreError:
            raise
        except IntegrityError as e:
            logger.warning(f"무결성 제약 위반: table={query.table_name} action={query.action}")
            raise DataStoreError("duplicate key value violates unique constraint", code="23505", details=str(e.orig)) from e
        except SQLAlchemyError as e:
            logger.error(f"저장소 호출 실패: table={query.table_name} action={query.action} error={e}")
            raise DataStoreError("data store request failed", details=str(e)) from e

        if query.expect_single:
            if len(rows) != 1:
                raise DataStoreError(
                    "JSON object requested, multiple (or no) rows returned",
                    code="PGRST116",
                    details=f"The result contains {len(rows)} rows",
                )
            return QueryResult(data=rows[0], count=1)
        return QueryResult(data=rows, count=len(rows))

    def _dispatch(self, session, query: TableQuery) -> List[Dict[str, Any]]:
        table = query.table

        if query.action == "select":
            columns = [query.column(c) for c in query.columns] or [table]
            stmt = sa_select(*columns).where(*query.where_clauses())
            for column, ascending in query.ordering:
                col = query.column(column)
                stmt = stmt.order_by(col.asc() if ascending else col.desc())
            return [dict(r) for r in session.execute(stmt).mappings().all()]

        if query.action == "insert":
            rows = []
            for row in query.values:
                for column in row:
                    query.column(column)
                rows.append({"id": new_id(), **row})
            self._check_insert_policy(session, query, rows)
            session.execute(sa_insert(table), rows)
            return self._reload(session, table, [r["id"] for r in rows])

        if not query.filters:
            # 조건 없는 일괄 수정/삭제는 허용하지 않음
            raise DataStoreError(f"{query.action.upper()} requires a WHERE clause", code="21000")

        ids = session.execute(
            sa_select(table.c.id).where(*query.where_clauses())
        ).scalars().all()
        if not ids:
            return []

        if query.action == "update":
            for column in query.values:
                query.column(column)
            session.execute(sa_update(table).where(table.c.id.in_(ids)).values(**query.values))
            return self._reload(session, table, ids)

        if query.action == "delete":
            deleted = self._reload(session, table, ids)
            session.execute(sa_delete(table).where(table.c.id.in_(ids)))
            return deleted

        raise DataStoreError(f"unsupported action {query.action}")

    @staticmethod
    def _reload(session, table, ids) -> List[Dict[str, Any]]:
        rows = session.execute(sa_select(table).where(table.c.id.in_(ids))).mappings().all()
        by_id = {r["id"]: dict(r) for r in rows}
        return [by_id[i] for i in ids if i in by_id]


# ✅ 기본 클라이언트 (앱 전역 DB 세션 팩토리 사용)
data_client = DataClient()
