"""
家谱数据校验：亲子环、年龄矛盾、多个“我”、悬空关系
"""

from typing import Iterable, List

import networkx as nx

from .models import RelationType, coerce_members, coerce_relations

# 指向父母的关系类型（终点是起点的父母）
_PARENT_TYPES = (RelationType.FATHER, RelationType.MOTHER)
# 指向子女的关系类型（终点是起点的子女）
_CHILD_TYPES = (RelationType.SON, RelationType.DAUGHTER)


def build_parent_graph(relations: Iterable) -> nx.DiGraph:
    """把 father/mother/son/daughter 边统一成 父母 -> 子女 的有向边"""
    P = nx.DiGraph()
    for rel in coerce_relations(relations):
        relation = RelationType.parse(rel.relation_type)
        if relation in _PARENT_TYPES:
            P.add_edge(rel.to_member_id, rel.from_member_id)
        elif relation in _CHILD_TYPES:
            P.add_edge(rel.from_member_id, rel.to_member_id)
    return P


def validate_graph(members: Iterable, relations: Iterable) -> List[str]:
    """
    校验家谱图，返回警告列表：
    - 不止一个“我”
    - 关系引用了不存在的成员
    - 亲子关系成环
    - 年龄不合理（子女比父母出生早）

    推导在这些情况下仍会结束，但结果没有意义。
    """
    members = coerce_members(members)
    relations = coerce_relations(relations)
    by_id = {m.id: m for m in members}
    warnings: List[str] = []

    selves = [m.nickname for m in members if m.is_self]
    if len(selves) > 1:
        warnings.append(f"More than one self member: {selves}")

    for rel in relations:
        for endpoint in (rel.from_member_id, rel.to_member_id):
            if endpoint not in by_id:
                warnings.append(f"Relation {rel.id} references unknown member {endpoint}")

    parent_graph = build_parent_graph(relations)

    try:
        cycle = nx.find_cycle(parent_graph, orientation="original")
        cycle_nodes = [by_id[edge[0]].nickname if edge[0] in by_id else edge[0] for edge in cycle]
        warnings.append(f"Cycle detected in parent-child relationships: {cycle_nodes}")
    except nx.NetworkXNoCycle:
        pass

    # birth_date 为 ISO 格式（YYYY-MM-DD），可直接按字符串比较
    for parent_id, child_id in parent_graph.edges():
        parent = by_id.get(parent_id)
        child = by_id.get(child_id)
        if parent is None or child is None:
            continue
        if not parent.birth_date or not child.birth_date:
            continue

        if child.birth_date < parent.birth_date:
            warnings.append(f"Impossible: {child.nickname} born before parent {parent.nickname}")
            continue
        try:
            parent_year = int(parent.birth_date[:4])
            child_year = int(child.birth_date[:4])
        except ValueError:
            continue
        if child_year - parent_year < 12:
            warnings.append(
                f"Suspicious: {parent.nickname} was less than 12 years old "
                f"when {child.nickname} was born"
            )

    return warnings
