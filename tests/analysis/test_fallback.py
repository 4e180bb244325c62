import pytest

from vistag.pipeline.analysis.fallback import FALLBACK_DESCRIPTION, FALLBACK_TAGS, fallback_result
from vistag.pipeline.analysis.types import AnalysisLimits


def test_wide_title_budget():
    result = fallback_result(AnalysisLimits(title=120, description=600, tags=60))

    assert result.title == "Image Analysis (Processing Complete)"
    assert result.description == FALLBACK_DESCRIPTION
    assert result.tags == list(FALLBACK_TAGS)


def test_narrow_title_budget_uses_short_status():
    result = fallback_result(AnalysisLimits(title=30, description=600, tags=60))
    assert result.title == "Image Analysis (Analyzed)"


def test_title_and_description_are_fitted():
    result = fallback_result(AnalysisLimits(title=10, description=20, tags=60))

    assert result.title == "Image A..."
    assert result.description == FALLBACK_DESCRIPTION[:17] + "..."


def test_tags_are_not_refitted():
    result = fallback_result(AnalysisLimits(title=120, description=600, tags=10))
    assert result.tags == ["Image Analysis", "Visual Processing", "AI Detection"]


@pytest.mark.parametrize("title,description", [(1, 1), (2, 2), (3, 3), (31, 100), (500, 2000)])
def test_text_budgets_hold(title, description):
    result = fallback_result(AnalysisLimits(title=title, description=description))
    assert len(result.title) <= title
    assert len(result.description) <= description


def test_each_call_returns_a_fresh_tag_list():
    first = fallback_result(AnalysisLimits())
    first.tags.append("mutated")
    assert fallback_result(AnalysisLimits()).tags == list(FALLBACK_TAGS)
