"""
家谱服务的异常类型
"""


class KinTreeError(Exception):
    """所有 kintree 异常的基类"""


class UnknownMemberError(KinTreeError):
    """关系边或查询引用了成员集合之外的 id（调用方数据加载有误）"""

    def __init__(self, member_id: str):
        self.member_id = member_id
        super().__init__(f"Member {member_id} is not in the supplied member set")


class MemberNotFoundError(KinTreeError):
    """存储中找不到该成员，或成员不属于当前家谱"""

    def __init__(self, member_id: str):
        self.member_id = member_id
        super().__init__(f"Member not found: {member_id}")


class RelationNotFoundError(KinTreeError):
    """存储中找不到该关系"""

    def __init__(self, relation_id: str):
        self.relation_id = relation_id
        super().__init__(f"Relation not found: {relation_id}")


class DuplicateSelfMemberError(KinTreeError):
    """同一家谱中只能有一个“我”"""

    def __init__(self, application_id=None):
        self.application_id = application_id
        super().__init__("A self member already exists for this family tree")
