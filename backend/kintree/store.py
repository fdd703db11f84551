"""
家庭成员与关系的 SQLite 存储
"""

import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Union

from .errors import DuplicateSelfMemberError, MemberNotFoundError, RelationNotFoundError
from .models import (
    CreateFamilyMemberInput,
    CreateFamilyRelationInput,
    FamilyMember,
    FamilyRelation,
    Gender,
    UpdateFamilyMemberInput,
    default_avatar,
)

logger = logging.getLogger(__name__)

MEMBER_COLUMNS = (
    "id", "application_id", "nickname", "real_name", "gender", "birth_date",
    "avatar_type", "avatar_url", "notes", "is_self", "created_at", "updated_at",
)
RELATION_COLUMNS = (
    "id", "application_id", "from_member_id", "to_member_id", "relation_type", "created_at",
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_database(db_path: Union[str, Path]) -> sqlite3.Connection:
    """打开数据库，建好成员表和关系表"""
    if str(db_path) != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    conn.execute("""
        CREATE TABLE IF NOT EXISTS family_members (
            id TEXT PRIMARY KEY,
            application_id TEXT,
            nickname TEXT NOT NULL,
            real_name TEXT,
            gender TEXT NOT NULL,
            birth_date TEXT,
            avatar_type TEXT NOT NULL,
            avatar_url TEXT,
            notes TEXT,
            is_self INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS family_relations (
            id TEXT PRIMARY KEY,
            application_id TEXT,
            from_member_id TEXT NOT NULL,
            to_member_id TEXT NOT NULL,
            relation_type TEXT NOT NULL,
            created_at TEXT NOT NULL,
            FOREIGN KEY (from_member_id) REFERENCES family_members(id) ON DELETE CASCADE,
            FOREIGN KEY (to_member_id) REFERENCES family_members(id) ON DELETE CASCADE
        )
    """)

    conn.commit()
    return conn


def _scope_clause(application_id: Optional[str]) -> tuple:
    if application_id:
        return "application_id = ?", (application_id,)
    return "application_id IS NULL", ()


def _row_to_member(row: sqlite3.Row) -> FamilyMember:
    data = dict(row)
    data["is_self"] = bool(data["is_self"])
    return FamilyMember(**data)


def _row_to_relation(row: sqlite3.Row) -> FamilyRelation:
    return FamilyRelation(**dict(row))


class FamilyStore:
    """
    成员与关系的增删改查

    所有列表都按 application_id 划分；没有 application_id 的记录属于默认家谱。
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    @classmethod
    def open(cls, db_path: Union[str, Path]) -> "FamilyStore":
        return cls(create_database(db_path))

    def close(self):
        self.conn.close()

    # 成员

    def get_members(self, application_id: Optional[str] = None) -> List[FamilyMember]:
        where, params = _scope_clause(application_id)
        rows = self.conn.execute(
            f"SELECT {', '.join(MEMBER_COLUMNS)} FROM family_members WHERE {where} "
            "ORDER BY is_self DESC, created_at ASC, rowid ASC",
            params,
        ).fetchall()
        return [_row_to_member(r) for r in rows]

    def get_member(self, member_id: str) -> Optional[FamilyMember]:
        row = self.conn.execute(
            f"SELECT {', '.join(MEMBER_COLUMNS)} FROM family_members WHERE id = ?",
            (member_id,),
        ).fetchone()
        return _row_to_member(row) if row else None

    def get_self_member(self, application_id: Optional[str] = None) -> Optional[FamilyMember]:
        where, params = _scope_clause(application_id)
        row = self.conn.execute(
            f"SELECT {', '.join(MEMBER_COLUMNS)} FROM family_members WHERE is_self = 1 AND {where}",
            params,
        ).fetchone()
        return _row_to_member(row) if row else None

    def create_member(self, data: CreateFamilyMemberInput) -> FamilyMember:
        application_id = data.applicationId or data.application_id or None
        if data.is_self and self.get_self_member(application_id) is not None:
            raise DuplicateSelfMemberError(application_id)

        now = _now()
        member = FamilyMember(
            id=str(uuid.uuid4()),
            application_id=application_id,
            nickname=data.nickname,
            real_name=data.real_name or None,
            gender=data.gender,
            birth_date=data.birth_date or None,
            avatar_type=data.avatar_type or default_avatar(data.gender),
            avatar_url=data.avatar_url or None,
            notes=data.notes or None,
            is_self=data.is_self,
            created_at=now,
            updated_at=now,
        )
        self.conn.execute(
            f"INSERT INTO family_members ({', '.join(MEMBER_COLUMNS)}) "
            f"VALUES ({', '.join('?' for _ in MEMBER_COLUMNS)})",
            self._member_values(member),
        )
        self.conn.commit()
        logger.info("Created family member %s (%s)", member.id, member.nickname)
        return member

    def update_member(self, member_id: str, data: UpdateFamilyMemberInput) -> FamilyMember:
        """只更新传入的字段；头像置空时按性别恢复默认头像"""
        existing = self.get_member(member_id)
        if existing is None:
            raise MemberNotFoundError(member_id)

        changes: Dict[str, object] = data.model_dump(exclude_unset=True, mode="json")
        # 昵称、性别为必填列，传 null 视为不修改
        for column in ("nickname", "gender"):
            if changes.get(column) is None:
                changes.pop(column, None)
        if "avatar_type" in changes and changes["avatar_type"] is None:
            gender = Gender(changes.get("gender") or existing.gender)
            changes["avatar_type"] = default_avatar(gender).value

        if changes:
            changes["updated_at"] = _now()
            assignments = ", ".join(f"{column} = ?" for column in changes)
            self.conn.execute(
                f"UPDATE family_members SET {assignments} WHERE id = ?",
                (*changes.values(), member_id),
            )
            self.conn.commit()
        return self.get_member(member_id)

    def delete_member(self, member_id: str) -> None:
        """删除成员，相关的关系一并删除"""
        cursor = self.conn.execute("DELETE FROM family_members WHERE id = ?", (member_id,))
        self.conn.commit()
        if cursor.rowcount == 0:
            raise MemberNotFoundError(member_id)
        logger.info("Deleted family member %s", member_id)

    # 关系

    def get_relations(self, application_id: Optional[str] = None) -> List[FamilyRelation]:
        where, params = _scope_clause(application_id)
        rows = self.conn.execute(
            f"SELECT {', '.join(RELATION_COLUMNS)} FROM family_relations WHERE {where} "
            "ORDER BY created_at ASC, rowid ASC",
            params,
        ).fetchall()
        return [_row_to_relation(r) for r in rows]

    def get_relation(self, relation_id: str) -> Optional[FamilyRelation]:
        row = self.conn.execute(
            f"SELECT {', '.join(RELATION_COLUMNS)} FROM family_relations WHERE id = ?",
            (relation_id,),
        ).fetchone()
        return _row_to_relation(row) if row else None

    def create_relation(self, data: CreateFamilyRelationInput) -> FamilyRelation:
        """两端成员必须存在，且与关系属于同一家谱"""
        application_id = data.applicationId or data.application_id or None
        for member_id in (data.from_member_id, data.to_member_id):
            member = self.get_member(member_id)
            if member is None or (member.application_id or None) != application_id:
                raise MemberNotFoundError(member_id)

        relation = FamilyRelation(
            id=str(uuid.uuid4()),
            application_id=application_id,
            from_member_id=data.from_member_id,
            to_member_id=data.to_member_id,
            relation_type=data.relation_type,
            created_at=_now(),
        )
        self.conn.execute(
            f"INSERT INTO family_relations ({', '.join(RELATION_COLUMNS)}) "
            f"VALUES ({', '.join('?' for _ in RELATION_COLUMNS)})",
            tuple(getattr(relation, c) for c in RELATION_COLUMNS),
        )
        self.conn.commit()
        logger.info(
            "Created family relation %s: %s -[%s]-> %s",
            relation.id, relation.from_member_id, relation.relation_type, relation.to_member_id,
        )
        return relation

    def delete_relation(self, relation_id: str) -> None:
        cursor = self.conn.execute("DELETE FROM family_relations WHERE id = ?", (relation_id,))
        self.conn.commit()
        if cursor.rowcount == 0:
            raise RelationNotFoundError(relation_id)

    def get_tree_data(self, application_id: Optional[str] = None) -> dict:
        return {
            "members": self.get_members(application_id),
            "relations": self.get_relations(application_id),
        }

    @staticmethod
    def _member_values(member: FamilyMember) -> tuple:
        data = member.model_dump(mode="json")
        data["is_self"] = int(member.is_self)
        return tuple(data[c] for c in MEMBER_COLUMNS)
