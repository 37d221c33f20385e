import numpy as np
import pytest

import sbm_config
from compute_delta_entropy import (compute_delta_entropy, compute_delta_entropy_alt, compute_delta_entropy_for_move,
                                   compute_delta_entropy_reference, entropy_row_calc, entropy_row_calc_ignore)
from interblock_edge_count import compute_block_degrees
from interblock_update import AgglomerativeMerge, apply_move, vertex_move
from partition_support import compute_data_entropy, compute_overall_entropy
from sbm_errors import DegenerateLog, InconsistentDegree, ShapeMismatch


def overall_entropy(g, M, d_out, d_in):
    return compute_overall_entropy(M, d_out, d_in, g.B, g.N, g.E)


class TestOverallEntropy:

    def test_ring(self, ring):
        S = compute_overall_entropy(ring.M, ring.d_out, ring.d_in, 2, 4, 4)
        # model term 12 ln 2, data term 4 ln 4
        assert S == pytest.approx(20 * np.log(2))

    def test_zero_cells_contribute_nothing(self):
        M = np.array([[3, 0], [0, 0]])
        d_out, d_in, _ = compute_block_degrees(M, 2)
        data_S = compute_data_entropy(M, d_out, d_in)
        assert np.isfinite(data_S)
        assert data_S == pytest.approx(3 * np.log(3))

    def test_needs_edges(self, ring):
        with pytest.raises(ValueError):
            compute_overall_entropy(ring.M, ring.d_out, ring.d_in, 2, 4, 0)

    def test_shape_mismatch(self, ring):
        with pytest.raises(ShapeMismatch):
            compute_overall_entropy(ring.M, ring.d_out, ring.d_in, 3, 4, 4)

    def test_degenerate_log(self):
        with pytest.raises(DegenerateLog):
            compute_data_entropy(np.array([[1]]), np.array([0]), np.array([1]))

    def test_stale_degrees(self, ring):
        with sbm_config.override(verify_degrees=True):
            with pytest.raises(InconsistentDegree):
                compute_data_entropy(ring.M, np.array([2, 3]), ring.d_in)


class TestRowCalc:

    def test_all_zero_row_is_exactly_zero(self):
        x = np.zeros(4, dtype=int)
        assert entropy_row_calc(x, np.zeros(4, dtype=int), 0) == 0.0
        assert entropy_row_calc_ignore(x, np.zeros(4, dtype=int), 0, 1, 2) == 0.0

    def test_ignored_entries(self):
        x = np.array([1, 5, 2])
        y = np.array([2, 1, 4])
        # only entry 2 survives: 2 * ln(2 / (4 * 3))
        assert entropy_row_calc_ignore(x, y, 3, 0, 1) == pytest.approx(2 * np.log(2 / 12.))

    def test_zero_degree_against_count(self):
        with pytest.raises(DegenerateLog):
            entropy_row_calc(np.array([1, 0]), np.array([0, 1]), 1)


class TestDeltaEntropy:

    def test_ring_move(self, ring):
        move = vertex_move(1, 1, ring.b, ring.out_neighbors, ring.in_neighbors)
        delta, result, (d_out_new, d_in_new, d_new) = compute_delta_entropy_for_move(
            ring.M, move, ring.d_out, ring.d_in, ring.d)
        np.testing.assert_array_equal(d_out_new, [1, 3])
        np.testing.assert_array_equal(d_in_new, [1, 3])
        np.testing.assert_array_equal(d_new, [2, 6])
        assert delta == pytest.approx(2 * np.log(13.5) - 4 * np.log(4))

    def test_same_block_is_zero(self, ring):
        move = vertex_move(1, 0, ring.b, ring.out_neighbors, ring.in_neighbors)
        delta, _, _ = compute_delta_entropy_for_move(ring.M, move, ring.d_out, ring.d_in, ring.d)
        assert delta == 0.0

    def test_vertex_moves_match_overall_entropy(self, random_state):
        g = random_state
        S0 = overall_entropy(g, g.M, g.d_out, g.d_in)
        for vertex in range(g.N):
            s = (g.b[vertex] + 2) % g.B
            move = vertex_move(vertex, s, g.b, g.out_neighbors, g.in_neighbors)
            delta, result, (d_out_new, d_in_new, d_new) = compute_delta_entropy_for_move(
                g.M, move, g.d_out, g.d_in, g.d)
            M = apply_move(g.M.copy(), move, result)

            d_out_true, d_in_true, d_true = compute_block_degrees(M, g.B)
            np.testing.assert_array_equal(d_out_new, d_out_true)
            np.testing.assert_array_equal(d_in_new, d_in_true)
            np.testing.assert_array_equal(d_new, d_true)

            S1 = overall_entropy(g, M, d_out_new, d_in_new)
            assert S1 == pytest.approx(S0 + delta, abs=1e-8)

    def test_self_loop_move_matches_overall_entropy(self, self_loop_graph):
        g = self_loop_graph
        move = vertex_move(0, 1, g.b, g.out_neighbors, g.in_neighbors)
        delta, result, (d_out_new, d_in_new, _) = compute_delta_entropy_for_move(g.M, move, g.d_out, g.d_in, g.d)
        M = apply_move(g.M.copy(), move, result)
        S0 = overall_entropy(g, g.M, g.d_out, g.d_in)
        assert overall_entropy(g, M, d_out_new, d_in_new) == pytest.approx(S0 + delta)

    def test_merges_match_overall_entropy(self, random_state):
        g = random_state
        S0 = overall_entropy(g, g.M, g.d_out, g.d_in)
        for r in range(g.B):
            s = (r + 1) % g.B
            move = AgglomerativeMerge(r, s)
            delta, result, (d_out_new, d_in_new, _) = compute_delta_entropy_for_move(
                g.M, move, g.d_out, g.d_in, g.d)
            assert d_out_new[r] == 0 and d_in_new[r] == 0
            M = apply_move(g.M.copy(), move, result)
            # same B on both sides, so the model term cancels
            assert overall_entropy(g, M, d_out_new, d_in_new) == pytest.approx(S0 + delta, abs=1e-8)

    def test_accepted_sequence_tracks_overall_entropy(self, random_state):
        g = random_state
        rng = np.random.RandomState(3)
        M, b = g.M.copy(), g.b.copy()
        d_out, d_in, d = g.d_out.copy(), g.d_in.copy(), g.d.copy()
        S = overall_entropy(g, M, d_out, d_in)
        for vertex in rng.randint(g.N, size=50):
            move = vertex_move(vertex, rng.randint(g.B), b, g.out_neighbors, g.in_neighbors)
            delta, result, (d_out, d_in, d) = compute_delta_entropy_for_move(M, move, d_out, d_in, d)
            M = apply_move(M, move, result)
            b[vertex] = move.s
            S += delta
        assert overall_entropy(g, M, d_out, d_in) == pytest.approx(S, abs=1e-7)

    def test_reference_agrees(self, random_state):
        g = random_state
        for vertex in range(0, g.N, 3):
            move = vertex_move(vertex, (g.b[vertex] + 1) % g.B, g.b, g.out_neighbors, g.in_neighbors)
            _, result, (d_out_new, d_in_new, _) = compute_delta_entropy_for_move(g.M, move, g.d_out, g.d_in, g.d)
            args = (move.r, move.s, g.M, result.M_r_row, result.M_s_row, result.M_r_col, result.M_s_col,
                    g.d_out, g.d_in, d_out_new, d_in_new)
            assert compute_delta_entropy_alt(*args) == pytest.approx(compute_delta_entropy_reference(*args))

    def test_verification_switches(self, random_state):
        g = random_state
        move = vertex_move(0, (g.b[0] + 1) % g.B, g.b, g.out_neighbors, g.in_neighbors)
        plain, _, _ = compute_delta_entropy_for_move(g.M, move, g.d_out, g.d_in, g.d)
        with sbm_config.override(verify_delta_entropy=True, verify_degrees=True):
            verified, _, _ = compute_delta_entropy_for_move(g.M, move, g.d_out, g.d_in, g.d)
        assert verified == pytest.approx(plain)

    def test_wrong_new_degrees_are_caught(self, ring):
        move = vertex_move(1, 1, ring.b, ring.out_neighbors, ring.in_neighbors)
        _, result, _ = compute_delta_entropy_for_move(ring.M, move, ring.d_out, ring.d_in, ring.d)
        with sbm_config.override(verify_degrees=True):
            with pytest.raises(InconsistentDegree):
                compute_delta_entropy(0, 1, ring.M, result.M_r_row, result.M_s_row, result.M_r_col, result.M_s_col,
                                      ring.d_out, ring.d_in, ring.d_out, ring.d_in)

    def test_wrong_row_length_is_caught(self, ring):
        move = vertex_move(1, 1, ring.b, ring.out_neighbors, ring.in_neighbors)
        _, result, (d_out_new, d_in_new, _) = compute_delta_entropy_for_move(ring.M, move, ring.d_out, ring.d_in,
                                                                             ring.d)
        long_row = np.append(result.M_r_row, 0)
        with sbm_config.override(verify_degrees=True):
            with pytest.raises(ShapeMismatch):
                compute_delta_entropy(0, 1, ring.M, long_row, result.M_s_row, result.M_r_col, result.M_s_col,
                                      ring.d_out, ring.d_in, d_out_new, d_in_new)
