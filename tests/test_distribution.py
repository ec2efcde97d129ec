"""
Unit tests for food property distributions.

Usage:
    pytest tests/test_distribution.py -v
"""
from ayurveda import Food, Taste, Temperature, distribution, profile_summary
from ayurveda.foods import Digestibility


class TestDistribution:
    """Generic grouping count."""

    def test_counts_by_key(self, food_factory):
        foods = [
            food_factory("a", primary_taste=Taste.SWEET),
            food_factory("b", primary_taste=Taste.SWEET),
            food_factory("c", primary_taste=Taste.BITTER),
        ]

        assert distribution(foods, lambda f: f.primary_taste) == {"sweet": 2, "bitter": 1}

    def test_missing_tag_is_unknown(self, food_factory):
        foods = [food_factory("a"), food_factory("b", temperature=Temperature.HOT)]

        assert distribution(foods, lambda f: f.temperature) == {"unknown": 1, "hot": 1}

    def test_arbitrary_key(self, food_factory):
        foods = [food_factory("a", category="Grains"), food_factory("b", category="Grains")]

        assert distribution(foods, lambda f: f.category) == {"Grains": 2}

    def test_empty(self):
        assert distribution([], lambda f: f.primary_taste) == {}


class TestProfileSummary:
    """Taste, temperature and digestibility together."""

    def test_all_three_groupings(self):
        foods = [
            Food.from_row({
                "id": "ginger", "name": "Ginger", "primary_taste": "pungent",
                "temperature": "hot", "digestibility": "easy",
            }),
            Food.from_row({
                "id": "banana", "name": "Banana", "primary_taste": "sweet",
                "temperature": "cold", "digestibility": "difficult",
            }),
            Food.from_row({
                "id": "rice", "name": "Rice", "primary_taste": "sweet",
                "temperature": "cold", "digestibility": Digestibility.EASY.value,
            }),
        ]

        summary = profile_summary(iter(foods))

        assert summary["taste"] == {"pungent": 1, "sweet": 2}
        assert summary["temperature"] == {"hot": 1, "cold": 2}
        assert summary["digestibility"] == {"easy": 2, "difficult": 1}
