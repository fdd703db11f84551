"""
亲戚称谓推导引擎
基于 NetworkX 有向多重图做广度优先搜索 + 称谓表精确查找
"""
import logging
from collections import deque
from typing import Dict, Iterable, List, Optional

import networkx as nx

from .errors import UnknownMemberError
from .kinship_loader import lookup_term
from .models import (
    FamilyMember,
    FamilyRelation,
    Gender,
    MemberRelation,
    PathStep,
    RelationResult,
    RelationType,
    coerce_members,
    coerce_relations,
)

logger = logging.getLogger(__name__)


# 无性别信息时使用的固定反向表
_FIXED_INVERSIONS = {
    RelationType.FATHER: RelationType.SON,
    RelationType.MOTHER: RelationType.DAUGHTER,
    RelationType.SON: RelationType.FATHER,
    RelationType.DAUGHTER: RelationType.MOTHER,
    RelationType.SPOUSE: RelationType.SPOUSE,
    RelationType.ELDER_BROTHER: RelationType.YOUNGER_BROTHER,
    RelationType.YOUNGER_BROTHER: RelationType.ELDER_BROTHER,
    RelationType.ELDER_SISTER: RelationType.YOUNGER_SISTER,
    RelationType.YOUNGER_SISTER: RelationType.ELDER_SISTER,
}

# 逆向走一条边时，新的一步描述的是“到达的那个人”，按他/她的性别取反向关系
_GENDERED_INVERSIONS = {
    RelationType.FATHER: (RelationType.SON, RelationType.DAUGHTER),
    RelationType.MOTHER: (RelationType.SON, RelationType.DAUGHTER),
    RelationType.SON: (RelationType.FATHER, RelationType.MOTHER),
    RelationType.DAUGHTER: (RelationType.FATHER, RelationType.MOTHER),
    RelationType.SPOUSE: (RelationType.SPOUSE, RelationType.SPOUSE),
    RelationType.ELDER_BROTHER: (RelationType.YOUNGER_BROTHER, RelationType.YOUNGER_SISTER),
    RelationType.ELDER_SISTER: (RelationType.YOUNGER_BROTHER, RelationType.YOUNGER_SISTER),
    RelationType.YOUNGER_BROTHER: (RelationType.ELDER_BROTHER, RelationType.ELDER_SISTER),
    RelationType.YOUNGER_SISTER: (RelationType.ELDER_BROTHER, RelationType.ELDER_SISTER),
}

# 路径描述用的中文标签
RELATION_LABELS = {
    "father": "父亲",
    "mother": "母亲",
    "son": "儿子",
    "daughter": "女儿",
    "spouse": "配偶",
    "elder_brother": "哥哥",
    "younger_brother": "弟弟",
    "elder_sister": "姐姐",
    "younger_sister": "妹妹",
}


def invert_relation(relation_type: str, gender: Optional[Gender] = None) -> Optional[str]:
    """
    反向关系类型。
    gender 是逆向到达的成员的性别；为 None 时用固定反向表。
    未知类型没有反向关系，返回 None。
    """
    relation = RelationType.parse(relation_type)
    if relation == RelationType.UNKNOWN:
        return None
    if gender is None:
        return _FIXED_INVERSIONS[relation].value
    male, female = _GENDERED_INVERSIONS[relation]
    return (male if Gender(gender) == Gender.MALE else female).value


def _build_graph(relations: List[FamilyRelation], members: Optional[List[FamilyMember]] = None):
    """
    构建有向多重图。
    传入 members 时，所有边的两端都必须在成员集合里，否则抛 UnknownMemberError。
    """
    G = nx.MultiDiGraph()

    if members is not None:
        for m in members:
            G.add_node(m.id, gender=m.gender)

    for rel in relations:
        if members is not None:
            for endpoint in (rel.from_member_id, rel.to_member_id):
                if endpoint not in G:
                    raise UnknownMemberError(endpoint)
        G.add_edge(rel.from_member_id, rel.to_member_id, relation=rel.relation_type)

    return G


def _bfs_path(G: nx.MultiDiGraph, source_id: str, target_id: str) -> List[str]:
    """
    广度优先，正向边追加原关系，逆向边追加反向关系（无反向的跳过）。
    同长度的多条路径按边的插入顺序取第一条。
    """
    if source_id not in G:
        return []

    visited = set()
    queue = deque([(source_id, [])])

    while queue:
        current, path = queue.popleft()
        if current == target_id:
            return path

        if current in visited:
            continue
        visited.add(current)

        for _, neighbor, data in G.out_edges(current, data=True):
            if neighbor not in visited:
                queue.append((neighbor, path + [data["relation"]]))

        for neighbor, _, data in G.in_edges(current, data=True):
            if neighbor in visited:
                continue
            inverted = invert_relation(data["relation"], G.nodes[neighbor].get("gender"))
            if inverted:
                queue.append((neighbor, path + [inverted]))

    return []


def resolve_path(from_id: str, to_id: str, relations: Iterable, members: Optional[Iterable] = None) -> List[str]:
    """
    从 from_id 到 to_id 的最短关系路径。
    不连通或起点终点相同时返回空列表。
    """
    members = coerce_members(members) if members is not None else None
    G = _build_graph(coerce_relations(relations), members)
    return _bfs_path(G, from_id, to_id)


def describe_path(path: List[str]) -> str:
    """可读路径描述，如 父亲 → 父亲"""
    return " → ".join(RELATION_LABELS.get(p, p) for p in path)


def resolve_between(from_id: str, to_id: str, members: Iterable, relations: Iterable) -> RelationResult:
    """
    推导两人之间的关系路径和称谓

    返回 RelationResult:
        path:       关系路径
        term:       from 叫 to 的称呼
        reverse:    to 叫 from 的称呼（取自同一行，不重新推导）
        path_desc:  路径描述
    """
    members = coerce_members(members)
    by_id: Dict[str, FamilyMember] = {m.id: m for m in members}
    for member_id in (from_id, to_id):
        if member_id not in by_id:
            raise UnknownMemberError(member_id)

    G = _build_graph(coerce_relations(relations), members)
    path = _bfs_path(G, from_id, to_id)
    if not path:
        logger.debug("No relation path: %s -> %s", from_id, to_id)
        return RelationResult()

    chain = ".".join(path)
    path_desc = describe_path(path)
    entry = lookup_term(chain, by_id[to_id].gender)
    if entry is None:
        logger.debug("No kinship term for %s (%s): %s -> %s", chain, by_id[to_id].gender.value, from_id, to_id)
        return RelationResult(path=path, path_desc=path_desc)

    logger.debug("Resolved %s -> %s: %s => %s", from_id, to_id, chain, entry.term_standard)
    return RelationResult(
        path=path,
        term=entry.term_standard,
        reverse=entry.term_reverse,
        path_desc=path_desc,
    )


def relation_to_self(member_id: str, members: Iterable, relations: Iterable) -> Optional[RelationResult]:
    """
    以“我”为起点看某个成员的称谓。
    没有“我”、目标就是“我”、不连通或查不到称谓时返回 None。
    """
    members = coerce_members(members)
    self_member = next((m for m in members if m.is_self), None)
    if self_member is None or self_member.id == member_id:
        return None

    result = resolve_between(self_member.id, member_id, members, relations)
    if not result.path or result.term is None:
        return None
    return result


def direct_relation(a_id: str, b_id: str, relations: Iterable) -> Optional[FamilyRelation]:
    """两人之间的直接关系边（任一方向）"""
    for rel in coerce_relations(relations):
        if (rel.from_member_id, rel.to_member_id) in ((a_id, b_id), (b_id, a_id)):
            return rel
    return None


def member_relations(member_id: str, members: Iterable, relations: Iterable) -> List[MemberRelation]:
    """某个成员的所有直接关系，另一端不在成员集合里的边跳过"""
    by_id = {m.id: m for m in coerce_members(members)}
    result = []
    for rel in coerce_relations(relations):
        if rel.from_member_id == member_id:
            other, direction = by_id.get(rel.to_member_id), "from"
        elif rel.to_member_id == member_id:
            other, direction = by_id.get(rel.from_member_id), "to"
        else:
            continue
        if other is not None:
            result.append(MemberRelation(relation=rel, other_member=other, direction=direction))
    return result


def lookup_steps(steps: Iterable) -> Optional[RelationResult]:
    """
    手动选择路径：按步骤拼出关系路径，用最后一步的性别查称谓。
    没有步骤或查不到称谓时返回 None。
    """
    steps = [s if isinstance(s, PathStep) else PathStep.model_validate(s) for s in steps]
    if not steps:
        return None

    path = [s.relation for s in steps]
    entry = lookup_term(".".join(path), steps[-1].gender)
    if entry is None:
        return None
    return RelationResult(
        path=path,
        term=entry.term_standard,
        reverse=entry.term_reverse,
        path_desc=describe_path(path),
    )
