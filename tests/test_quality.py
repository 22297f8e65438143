import pytest

from optimization.quality import QualityAssessor, assess_result_quality, jaccard_similarity
from tests.conftest import make_result


class TestJaccard:
    def test_identical(self):
        assert jaccard_similarity("a b c", "C B A") == 1.0

    def test_partial(self):
        assert jaccard_similarity("a b", "b c") == pytest.approx(1 / 3)

    def test_both_empty_are_identical(self):
        assert jaccard_similarity("", "") == 1.0
        assert jaccard_similarity("  ", "") == 1.0

    def test_one_empty(self):
        assert jaccard_similarity("", "a b") == 0.0
        assert jaccard_similarity("a", "") == 0.0


class TestQualityAssessor:
    @pytest.fixture
    def assessor(self):
        return QualityAssessor()

    def test_empty_results(self, assessor):
        assert assessor.assess("capital of france", []) == 0.0
        assert assess_result_quality("x", [], {"diversity": 5.0}) == 0.0

    def test_single_result_diversity(self, assessor):
        assert assessor.diversity([make_result("a", text="paris")]) == 1.0

    def test_duplicate_results_have_no_diversity(self, assessor):
        results = [make_result("a", text="same text"), make_result("b", text="same text")]
        assert assessor.diversity(results) == 0.0

    def test_empty_texts_have_no_diversity(self, assessor):
        results = [make_result("a", text=""), make_result("b", text="")]
        assert assessor.diversity(results) == 0.0

    def test_relevance_and_coverage(self, assessor):
        results = [
            make_result("a", text="Paris is the capital"),
            make_result("b", text="France borders Spain"),
        ]
        terms = ["capital", "france"]

        assert assessor.relevance(terms, results) == pytest.approx(0.5)
        assert assessor.coverage(terms, results) == 1.0

    def test_no_key_terms(self, assessor):
        results = [make_result("a", text="anything")]
        assert assessor.relevance([], results) == 0.0
        assert assessor.coverage([], results) == 1.0
        # diversity 1 * 0.3 + relevance 0 * 0.5 + coverage 1 * 0.2
        assert assessor.assess("what is the", results) == pytest.approx(0.5)

    def test_weighted_sum(self):
        results = [
            make_result("a", text="capital city paris"),
            make_result("b", text="river seine"),
        ]
        quality = assess_result_quality(
            "capital paris",
            results,
            {"diversity": 1.0, "relevance": 1.0, "coverage": 1.0},
        )
        # diversity 1.0, relevance (1 + 0) / 2, coverage 1.0
        assert quality == pytest.approx(2.5)

    def test_default_weights_bound(self, assessor):
        results = [make_result("a", text="capital of france is paris")]
        quality = assessor.assess("capital france", results)
        assert quality == pytest.approx(1.0)
