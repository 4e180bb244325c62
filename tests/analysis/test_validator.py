import pytest

from vistag.pipeline.analysis.types import AnalysisError, ShapeError
from vistag.pipeline.analysis.validator import validate_shape


def test_valid_candidate_passes_through():
    candidate = {"title": "T", "description": "D", "tags": [], "extra": 1}
    assert validate_shape(candidate) is candidate


def test_non_string_tags_are_left_for_the_fitter():
    candidate = {"title": "T", "description": "D", "tags": [1, None, "ok"]}
    assert validate_shape(candidate) is candidate


@pytest.mark.parametrize("candidate", [
    {"title": "X", "description": "Y"},
    {"title": "X", "description": "Y", "tags": "cat, dog"},
    {"title": "X", "description": "Y", "tags": None},
    {"title": "", "description": "Y", "tags": []},
    {"description": "Y", "tags": []},
    {"title": 12, "description": "Y", "tags": []},
    {"title": "X", "description": "", "tags": []},
    {"title": "X", "description": ["Y"], "tags": []},
    [],
    "title",
])
def test_wrong_shape(candidate):
    with pytest.raises(ShapeError):
        validate_shape(candidate)


def test_shape_error_is_recoverable_analysis_error():
    assert issubclass(ShapeError, AnalysisError)
