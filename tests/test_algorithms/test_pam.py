"""
Tests for the PAM k-medoids solver.
"""

import threading
import warnings

import numpy as np
import pytest

from country_medoids.algorithms.dissimilarity import build_dissimilarity_matrix
from country_medoids.algorithms.pam import assign_to_medoids, build_medoids, pam
from country_medoids.algorithms.quality import silhouette_samples
from country_medoids.exceptions import DegenerateInputError, InvalidInputError, NotConverged


# ------------------------------------------------------------------
# Concrete scenarios
# ------------------------------------------------------------------


def test_two_groups_manhattan(one_d_groups):
    """[1, 2, 3] vs [100, 101, 102] with the middle elements as medoids."""
    dm = build_dissimilarity_matrix(one_d_groups, "manhattan")

    result = pam(dm, 2)

    assert result.k == 2
    assert result.medoids == (1, 4)
    np.testing.assert_array_equal(result.labels, [0, 0, 0, 1, 1, 1])
    np.testing.assert_array_equal(result.assignment, [1, 1, 1, 4, 4, 4])
    assert result.total_cost == pytest.approx(4.0)
    assert result.converged
    assert not result.cancelled


def test_two_groups_build_then_swap(one_d_groups):
    """BUILD picks 3 and 101 (cost 5); one swap reaches the optimum."""
    dm = build_dissimilarity_matrix(one_d_groups, "manhattan")

    assert build_medoids(dm, 2) == [2, 4]
    result = pam(dm, 2)
    assert result.build_cost == pytest.approx(5.0)
    assert result.n_iter == 1


@pytest.mark.parametrize("k", [0, -1, 6, 7])
def test_k_out_of_range(one_d_groups, k):
    dm = build_dissimilarity_matrix(one_d_groups, "manhattan")
    with pytest.raises(InvalidInputError, match="K must satisfy"):
        pam(dm, k)


def test_k_must_be_integer(one_d_groups):
    dm = build_dissimilarity_matrix(one_d_groups)
    with pytest.raises(InvalidInputError, match="integer"):
        pam(dm, 2.0)
    with pytest.raises(InvalidInputError, match="integer"):
        pam(dm, True)


def test_single_observation_has_no_valid_k():
    dm = build_dissimilarity_matrix([[1.0]])
    with pytest.raises(InvalidInputError):
        pam(dm, 1)


def test_degenerate_input():
    dm = build_dissimilarity_matrix([[2.0, 1.0]] * 5)
    with pytest.raises(DegenerateInputError):
        pam(dm, 2)


def test_result_arrays_are_read_only(one_d_groups):
    result = pam(build_dissimilarity_matrix(one_d_groups, "manhattan"), 2)
    with pytest.raises(ValueError):
        result.labels[0] = 1
    with pytest.raises(ValueError):
        result.assignment[0] = 4
    np.testing.assert_array_equal(result.labels, [0, 0, 0, 1, 1, 1])


def test_raw_array_accepted():
    D = np.array([[0.0, 1.0, 9.0], [1.0, 0.0, 8.0], [9.0, 8.0, 0.0]])
    result = pam(D, 2)
    # Swapping 1 for 0 ties on cost, so the BUILD medoid stays
    assert result.medoids == (1, 2)
    np.testing.assert_array_equal(result.labels, [0, 0, 1])
    assert result.metadata["metric"] == "precomputed"


# ------------------------------------------------------------------
# Structural properties
# ------------------------------------------------------------------


@pytest.mark.parametrize("k", [1, 2, 3, 5, 8])
def test_medoids_valid_and_assignment_consistent(random_data, k):
    dm = build_dissimilarity_matrix(random_data)
    n = dm.n_observations

    result = pam(dm, k)

    assert len(result.medoids) == k
    assert len(set(result.medoids)) == k
    assert all(0 <= m < n for m in result.medoids)
    assert set(np.unique(result.assignment)) <= set(result.medoids)
    # Each medoid belongs to its own cluster
    for c, m in enumerate(result.medoids):
        assert result.labels[m] == c
        assert result.assignment[m] == m
    # Every observation sits with its nearest medoid
    D = dm.values
    nearest = D[:, list(result.medoids)].min(axis=1)
    np.testing.assert_allclose(D[np.arange(n), result.assignment], nearest)
    assert sum(result.cluster_sizes()) == n


def test_swap_never_worse_than_build(random_data):
    dm = build_dissimilarity_matrix(random_data, "manhattan")
    for k in (2, 3, 4, 6):
        build_cost = assign_to_medoids(dm, build_medoids(dm, k))[2]
        result = pam(dm, k)
        assert result.build_cost == pytest.approx(build_cost)
        assert result.total_cost <= build_cost + 1e-9


def test_result_is_local_optimum(random_data):
    """No single (medoid, non-medoid) swap lowers the cost."""
    dm = build_dissimilarity_matrix(random_data)
    result = pam(dm, 3)
    medoids = list(result.medoids)
    for p in range(3):
        for h in range(dm.n_observations):
            if h in medoids:
                continue
            trial = medoids.copy()
            trial[p] = h
            assert assign_to_medoids(dm, trial)[2] >= result.total_cost - 1e-9


def test_deterministic(random_data):
    dm = build_dissimilarity_matrix(random_data)
    first = pam(dm, 4, seed=1)
    second = pam(dm, 4, seed=99)
    assert first.medoids == second.medoids
    np.testing.assert_array_equal(first.labels, second.labels)
    assert first.total_cost == second.total_cost


def test_k_equals_one(random_data):
    dm = build_dissimilarity_matrix(random_data)
    result = pam(dm, 1)

    assert result.medoids == (int(np.argmin(dm.values.sum(axis=1))),)
    assert np.all(result.labels == 0)
    np.testing.assert_array_equal(silhouette_samples(result, dm), 0.0)


def test_k_equals_n_minus_one():
    rng = np.random.default_rng(3)
    X = rng.standard_normal((9, 2))
    dm = build_dissimilarity_matrix(X)

    result = pam(dm, 8)

    sizes = result.cluster_sizes()
    assert len(sizes) == 8
    assert set(sizes) <= {1, 2}
    assert sorted(sizes) == [1] * 7 + [2]


def test_recovers_blobs(three_blobs):
    X, truth = three_blobs
    result = pam(build_dissimilarity_matrix(X), 3)
    # Same partition up to relabelling
    for c in range(3):
        members = truth[result.labels == c]
        assert len(np.unique(members)) == 1


# ------------------------------------------------------------------
# Nearest-medoid assignment
# ------------------------------------------------------------------


def test_assignment_tie_goes_to_lowest_index():
    dm = build_dissimilarity_matrix([[0.0], [1.0], [2.0]])
    assignment, labels, cost = assign_to_medoids(dm, [2, 0])
    np.testing.assert_array_equal(assignment, [0, 0, 2])
    np.testing.assert_array_equal(labels, [0, 0, 1])
    assert cost == pytest.approx(1.0)


def test_assignment_rejects_bad_medoids():
    dm = build_dissimilarity_matrix([[0.0], [1.0], [2.0]])
    with pytest.raises(InvalidInputError):
        assign_to_medoids(dm, [1, 1])
    with pytest.raises(InvalidInputError):
        assign_to_medoids(dm, [0, 5])
    with pytest.raises(InvalidInputError):
        assign_to_medoids(dm, [])


# ------------------------------------------------------------------
# Iteration cap and cancellation
# ------------------------------------------------------------------


def test_iteration_cap_warns_and_returns_best(one_d_groups):
    dm = build_dissimilarity_matrix(one_d_groups, "manhattan")

    with pytest.warns(NotConverged):
        result = pam(dm, 2, max_iter=0)

    assert not result.converged
    assert not result.cancelled
    assert result.n_iter == 0
    assert result.total_cost == pytest.approx(5.0)
    assert result.medoids == (2, 4)


def test_no_warning_when_converged_exactly_at_cap(one_d_groups):
    dm = build_dissimilarity_matrix(one_d_groups, "manhattan")
    with warnings.catch_warnings():
        warnings.simplefilter("error", NotConverged)
        result = pam(dm, 2, max_iter=1)
    assert result.converged
    assert result.total_cost == pytest.approx(4.0)


def test_negative_max_iter_rejected(one_d_groups):
    dm = build_dissimilarity_matrix(one_d_groups)
    with pytest.raises(InvalidInputError, match="max_iter"):
        pam(dm, 2, max_iter=-1)


def test_cancellation_returns_build_result(one_d_groups):
    dm = build_dissimilarity_matrix(one_d_groups, "manhattan")
    event = threading.Event()
    event.set()

    with warnings.catch_warnings():
        warnings.simplefilter("error", NotConverged)
        result = pam(dm, 2, cancel_event=event)

    assert result.cancelled
    assert not result.converged
    assert result.n_iter == 0
    assert result.total_cost == pytest.approx(result.build_cost)


def test_unset_cancel_event_has_no_effect(one_d_groups):
    dm = build_dissimilarity_matrix(one_d_groups, "manhattan")
    result = pam(dm, 2, cancel_event=threading.Event())
    assert not result.cancelled
    assert result.total_cost == pytest.approx(4.0)


def test_medoid_labels(one_d_groups):
    names = ["a", "b", "c", "d", "e", "f"]
    result = pam(build_dissimilarity_matrix(one_d_groups, "manhattan"), 2)
    assert result.medoid_labels(names) == ["b", "e"]
    assert result.medoid_labels() == ["1", "4"]
    np.testing.assert_array_equal(result.members(1), [3, 4, 5])
