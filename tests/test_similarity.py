import random

import pytest

from aigateway.services import similarity
from aigateway.services.errors import DegenerateVector, DimensionMismatch


def test_identical_vectors_score_100():
    vector = [0.1, 0.2, 0.3, -0.4]

    assert similarity.score(vector, list(vector)) == 100


def test_opposite_unit_vectors_score_0():
    assert similarity.score([1.0, 0.0], [-1.0, 0.0]) == 0
    assert similarity.score([0.6, 0.8], [-0.6, -0.8]) == 0


def test_orthogonal_vectors_score_50():
    assert similarity.score([1.0, 0.0, 0.0], [0.0, 1.0, 0.0]) == 50


def test_cosine_similarity_is_scale_invariant():
    assert similarity.cosine_similarity([1.0, 2.0], [2.0, 4.0]) == pytest.approx(1.0)


def test_score_is_symmetric_and_bounded():
    rng = random.Random(1234)
    for _ in range(200):
        size = rng.randint(1, 16)
        a = [rng.uniform(-1, 1) for _ in range(size)]
        b = [rng.uniform(-1, 1) for _ in range(size)]
        forward = similarity.score(a, b)
        assert forward == similarity.score(b, a)
        assert 0 <= forward <= 100


def test_half_rounds_up(monkeypatch):
    monkeypatch.setattr(similarity, "cosine_similarity", lambda a, b: 0.01)

    assert similarity.score([1.0], [1.0]) == 51


def test_float_overshoot_is_clamped(monkeypatch):
    monkeypatch.setattr(similarity, "cosine_similarity", lambda a, b: 1.0000000002)
    assert similarity.score([1.0], [1.0]) == 100

    monkeypatch.setattr(similarity, "cosine_similarity", lambda a, b: -1.0000000002)
    assert similarity.score([1.0], [1.0]) == 0


@pytest.mark.parametrize("a, b", [([1.0, 2.0, 3.0], [1.0, 2.0, 3.0, 4.0]), ([1.0], []), ([], [])])
def test_dimension_mismatch(a, b):
    with pytest.raises(DimensionMismatch):
        similarity.score(a, b)


@pytest.mark.parametrize("a, b", [([0.0, 0.0], [1.0, 2.0]), ([1.0, 2.0], [0.0, 0.0])])
def test_zero_vector_is_degenerate(a, b):
    with pytest.raises(DegenerateVector):
        similarity.score(a, b)


def test_huge_components_do_not_overflow():
    assert similarity.score([1e200, 0.0], [-1e200, 0.0]) == 0
    assert similarity.score([1e200, 3e200], [1e200, 3e200]) == 100
    assert similarity.score([1e300, 1e300], [1e300, -1e300]) == 50


def test_tiny_components_do_not_underflow():
    assert similarity.score([1e-200, 1e-200], [1e-200, 1e-200]) == 100
    assert similarity.score([1e-200, 0.0], [0.0, 1e-200]) == 50


def test_mixed_magnitudes_are_symmetric():
    a = [1e150, -2e150, 3e150]
    b = [1e-150, 5e-151, -2e-150]

    assert similarity.score(a, b) == similarity.score(b, a)
    assert 0 <= similarity.score(a, b) <= 100


@pytest.mark.parametrize("a", [[float("nan"), 1.0], [float("inf"), 1.0]])
def test_non_finite_components_are_degenerate(a):
    with pytest.raises(DegenerateVector):
        similarity.score(a, [1.0, 1.0])


def test_nan_similarity_is_not_clamped(monkeypatch):
    monkeypatch.setattr(similarity, "cosine_similarity", lambda a, b: float("nan"))

    with pytest.raises(DegenerateVector):
        similarity.score([1.0], [1.0])
