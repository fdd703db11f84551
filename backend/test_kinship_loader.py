"""Tests for the kinship term table."""
import pytest

from kintree.kinship_loader import KinshipData, get_kinship_data, lookup_term, terms_for_path
from kintree.models import Gender


class TestLookupTerm:
    def test_exact_match(self):
        term = lookup_term("father", Gender.MALE)
        assert term.term_standard == "爸爸/父亲"
        assert term.term_reverse == "儿子/女儿"
        assert term.region == "default"

    def test_accepts_gender_strings(self):
        assert lookup_term("mother", "female").term_standard == "妈妈/母亲"

    def test_gender_is_part_of_the_key(self):
        assert lookup_term("spouse", "male").term_standard == "老公/丈夫"
        assert lookup_term("spouse", "female").term_standard == "老婆/妻子"
        assert lookup_term("father", "female") is None

    def test_absent_keys_return_none(self):
        assert lookup_term("spouse.spouse.spouse", "male") is None
        assert lookup_term("", "male") is None
        assert lookup_term("father", "other") is None

    def test_regions_do_not_override_default(self):
        assert lookup_term("mother.father", "male").term_standard == "外公/外祖父"
        assert lookup_term("mother.father", "male", region="北方").term_standard == "姥爷"
        assert lookup_term("father", "male", region="火星") is None

    def test_no_path_canonicalization(self):
        assert lookup_term("father.son", "male") is not None
        assert lookup_term("mother.son", "male") is not None
        assert lookup_term("father.son", "male").relation_path != lookup_term("mother.son", "male").relation_path

    def test_pure(self):
        assert lookup_term("father.father", "male") == lookup_term("father.father", "male")


def test_variants_sorted_by_priority():
    variants = terms_for_path("mother.father", "male")
    assert [v.term_standard for v in variants] == ["姥爷", "外公/外祖父"]
    assert terms_for_path("nowhere", "male") == []


def test_singleton_is_read_only():
    data = get_kinship_data()
    assert data is get_kinship_data()
    assert len(data) > 0
    with pytest.raises(TypeError):
        data.terms[("father", "male", "default")] = None


class TestKinshipDataFile:
    @pytest.fixture
    def csv_path(self, tmp_path):
        path = tmp_path / "terms.csv"
        path.write_text(
            "relation_path,gender,term_standard,term_reverse,region,priority\n"
            "father,male,爸,儿,default,50\n"
            "father,male,父亲,儿子,default,100\n"
            ",male,空路径,x,default,100\n"
            "mother,female,妈,女,,\n",
            encoding="utf-8",
        )
        return path

    def test_highest_priority_wins(self, csv_path):
        data = KinshipData(str(csv_path))
        data.load()
        assert data.lookup("father", "male").term_standard == "父亲"
        assert [t.term_standard for t in data.variants("father", "male")] == ["父亲", "爸"]

    def test_defaults_and_skipped_rows(self, csv_path):
        data = KinshipData(str(csv_path))
        data.load()
        mother = data.lookup("mother", "female")
        assert mother.region == "default"
        assert mother.priority == 100
        assert len(data) == 2

    def test_load_once(self, csv_path):
        data = KinshipData(str(csv_path))
        data.load()
        csv_path.write_text("relation_path,gender,term_standard,term_reverse,region,priority\n", encoding="utf-8")
        data.load()
        assert len(data) == 2
