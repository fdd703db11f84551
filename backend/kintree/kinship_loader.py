"""
CSV 亲戚称谓数据加载器
从 kinship_terms.csv 加载并建立 (关系路径, 性别, 地区) -> 称谓 的只读查找表
"""
import csv
import logging
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from . import config
from .models import Gender, KinshipTerm

logger = logging.getLogger(__name__)

TermKey = Tuple[str, str, str]


def _parse_csv_row(row: dict) -> Optional[KinshipTerm]:
    """解析 CSV 一行，返回称谓条目；缺少必要字段时返回 None"""
    path = (row.get("relation_path") or "").strip()
    gender = (row.get("gender") or "").strip()
    standard = (row.get("term_standard") or "").strip()
    if not path or not gender or not standard:
        return None
    priority = (row.get("priority") or "").strip()
    return KinshipTerm(
        relation_path=path,
        gender=Gender(gender),
        term_standard=standard,
        term_reverse=(row.get("term_reverse") or "").strip(),
        region=(row.get("region") or "").strip() or "default",
        priority=int(priority) if priority else 100,
    )


def _gender_value(gender) -> str:
    return gender.value if isinstance(gender, Gender) else str(gender)


def _key(path: str, gender, region: str) -> TermKey:
    return (path, _gender_value(gender), region)


class KinshipData:
    """
    亲戚称谓数据存储，加载一次后只读。

    - terms:        (path, gender, region) -> 条目，重复键取 priority 最高的一行
    - path_index:   (path, gender) -> 各地区的条目，按 priority 从高到低
    """

    def __init__(self, csv_path: str = None):
        self.csv_path = csv_path or config.TERMS_PATH
        self.terms: Mapping[TermKey, KinshipTerm] = MappingProxyType({})
        self.path_index: Mapping[Tuple[str, str], Tuple[KinshipTerm, ...]] = MappingProxyType({})
        self._loaded = False

    def load(self):
        """从 CSV 加载数据"""
        if self._loaded:
            return

        terms: Dict[TermKey, KinshipTerm] = {}
        variants: Dict[Tuple[str, str], List[KinshipTerm]] = {}
        skipped = 0

        with open(self.csv_path, "r", encoding="utf-8", newline="") as f:
            for row in csv.DictReader(f):
                term = _parse_csv_row(row)
                if term is None:
                    skipped += 1
                    continue

                key = _key(term.relation_path, term.gender, term.region)
                existing = terms.get(key)
                if existing is None or term.priority > existing.priority:
                    terms[key] = term
                variants.setdefault((term.relation_path, term.gender.value), []).append(term)

        self.terms = MappingProxyType(terms)
        self.path_index = MappingProxyType({
            k: tuple(sorted(v, key=lambda t: t.priority, reverse=True))
            for k, v in variants.items()
        })
        self._loaded = True

        regions = {k[2] for k in terms}
        logger.info(
            "Loaded kinship terms: entries=%d, paths=%d, regions=%s, skipped=%d",
            len(terms), len(self.path_index), sorted(regions), skipped,
        )

    def lookup(self, path: str, gender, region: str = "default") -> Optional[KinshipTerm]:
        """精确查找，不做模糊匹配和路径归一化"""
        return self.terms.get(_key(path, gender, region))

    def variants(self, path: str, gender) -> List[KinshipTerm]:
        """同一路径在各地区的称谓"""
        return list(self.path_index.get((path, _gender_value(gender)), ()))

    def __len__(self):
        return len(self.terms)


# ========== 查询入口 ==========

def lookup_term(path: str, gender, region: str = None) -> Optional[KinshipTerm]:
    """
    按 (关系路径, 目标性别, 地区) 查称谓。
    找不到是正常结果，返回 None。
    """
    return get_kinship_data().lookup(path, gender, region or config.DEFAULT_REGION)


def terms_for_path(path: str, gender) -> List[KinshipTerm]:
    return get_kinship_data().variants(path, gender)


# ========== 单例 ==========
_data_instance: Optional[KinshipData] = None


def get_kinship_data() -> KinshipData:
    """获取全局单例"""
    global _data_instance
    if _data_instance is None:
        data = KinshipData()
        data.load()
        _data_instance = data
    return _data_instance
