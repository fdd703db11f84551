"""
家谱数据模型
成员（节点）、关系（有向边）、称谓表条目和推导结果
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class AvatarType(str, Enum):
    ELDER_MALE = "elder_male"
    ELDER_FEMALE = "elder_female"
    ADULT_MALE = "adult_male"
    ADULT_FEMALE = "adult_female"
    YOUTH_MALE = "youth_male"
    YOUTH_FEMALE = "youth_female"
    CHILD = "child"


def default_avatar(gender: Gender) -> AvatarType:
    """未指定头像时按性别取成人头像"""
    return AvatarType.ADULT_MALE if gender == Gender.MALE else AvatarType.ADULT_FEMALE


class RelationType(str, Enum):
    """
    已知关系类型。
    数据库中关系类型是自由字符串，不在此列的一律归为 UNKNOWN，
    UNKNOWN 没有反向关系，不能逆向遍历。
    """
    FATHER = "father"
    MOTHER = "mother"
    SON = "son"
    DAUGHTER = "daughter"
    SPOUSE = "spouse"
    ELDER_BROTHER = "elder_brother"
    YOUNGER_BROTHER = "younger_brother"
    ELDER_SISTER = "elder_sister"
    YOUNGER_SISTER = "younger_sister"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str) -> "RelationType":
        try:
            relation = cls(value)
        except ValueError:
            return cls.UNKNOWN
        return relation


KNOWN_RELATION_TYPES = [r.value for r in RelationType if r != RelationType.UNKNOWN]


class FamilyMember(BaseModel):
    id: str
    application_id: Optional[str] = None
    nickname: str
    real_name: Optional[str] = None
    gender: Gender
    birth_date: Optional[str] = None  # YYYY-MM-DD
    avatar_type: Optional[AvatarType] = None
    avatar_url: Optional[str] = None
    notes: Optional[str] = None
    is_self: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class FamilyRelation(BaseModel):
    id: Optional[str] = None
    application_id: Optional[str] = None
    from_member_id: str
    to_member_id: str
    relation_type: str
    created_at: Optional[str] = None


class CreateFamilyMemberInput(BaseModel):
    nickname: Optional[str] = None
    real_name: Optional[str] = None
    gender: Optional[Gender] = None
    birth_date: Optional[str] = None
    avatar_type: Optional[AvatarType] = None
    avatar_url: Optional[str] = None
    notes: Optional[str] = None
    is_self: bool = False
    application_id: Optional[str] = None
    # 前端传的是 applicationId
    applicationId: Optional[str] = None


class UpdateFamilyMemberInput(BaseModel):
    nickname: Optional[str] = None
    real_name: Optional[str] = None
    gender: Optional[Gender] = None
    birth_date: Optional[str] = None
    avatar_type: Optional[AvatarType] = None
    avatar_url: Optional[str] = None
    notes: Optional[str] = None


class CreateFamilyRelationInput(BaseModel):
    from_member_id: Optional[str] = None
    to_member_id: Optional[str] = None
    relation_type: Optional[str] = None
    application_id: Optional[str] = None
    applicationId: Optional[str] = None


class KinshipTerm(BaseModel):
    """称谓表的一行"""
    relation_path: str
    gender: Gender
    term_standard: str   # 我叫 Ta
    term_reverse: str    # Ta 叫我
    region: str = "default"
    priority: int = 100

    model_config = {"frozen": True}


class PathStep(BaseModel):
    relation: str
    gender: Gender


class RelationResult(BaseModel):
    path: List[str] = Field(default_factory=list)
    term: Optional[str] = None
    reverse: Optional[str] = None
    path_desc: str = ""


class MemberRelation(BaseModel):
    relation: FamilyRelation
    other_member: FamilyMember
    direction: str  # "from" | "to"


def coerce_members(members) -> List[FamilyMember]:
    """接受模型或字典"""
    return [m if isinstance(m, FamilyMember) else FamilyMember.model_validate(m) for m in members]


def coerce_relations(relations) -> List[FamilyRelation]:
    return [r if isinstance(r, FamilyRelation) else FamilyRelation.model_validate(r) for r in relations]
