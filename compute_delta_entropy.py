import logging

import numpy as np

import sbm_config
from sbm_errors import DegenerateLog, InconsistentDegree, assert_close, check_vector_shape
from interblock_edge_count import check_block_degrees, compute_new_block_degrees
from interblock_update import compute_move_degrees, compute_new_rows_cols_interblock_edge_count_matrix

log = logging.getLogger(__name__)


def _log_ratio_terms(xm, ym, c):
    denominator = ym.astype(float) * c
    if sbm_config.check_log_arguments:
        if (xm < 0).any():
            raise DegenerateLog("Negative edge count in entropy term")
        if (denominator <= 0).any():
            raise DegenerateLog("Non-zero edge count against a zero block degree")
    return np.sum(xm * (np.log(xm) - np.log(denominator)))


def entropy_row_calc(x, y, c):
    mask = x.nonzero()[0]
    return _log_ratio_terms(x[mask], y[mask], c)


def entropy_row_calc_ignore(x, y, c, r, s):
    mask = (x != 0)
    mask[r] = 0
    mask[s] = 0
    return _log_ratio_terms(x[mask], y[mask], c)


def _check_new_degrees(r, s, M_r_row, M_s_row, M_r_col, M_s_col, d_out_new, d_in_new):
    for block, row, col in ((r, M_r_row, M_r_col), (s, M_s_row, M_s_col)):
        if d_in_new[block] != row.sum() or d_out_new[block] != col.sum():
            raise InconsistentDegree("Proposed degrees of block %d do not match its new row and column" % block)


def compute_delta_entropy_alt(r, s, M, M_r_row, M_s_row, M_r_col, M_s_col, d_out, d_in, d_out_new, d_in_new):
    r"""Compute change in entropy under the proposal. Reduced entropy means the proposed block is better than the current block.

        Parameters
        ----------
        r : int
                    current block assignment for the node under consideration
        s : int
                    proposed block assignment for the node under consideration
        M : ndarray (int), shape = (#blocks, #blocks)
                    edge count matrix between all the blocks.
        M_r_row : ndarray (int)
                    the current block row of the new edge count matrix under proposal
        M_s_row : ndarray (int)
                    the proposed block row of the new edge count matrix under proposal
        M_r_col : ndarray (int)
                    the current block col of the new edge count matrix under proposal
        M_s_col : ndarray  (int)
                    the proposed block col of the new edge count matrix under proposal
        d_out : ndarray (int)
                    the current out degree of each block
        d_in : ndarray (int)
                    the current in degree of each block
        d_out_new : ndarray (int)
                    the new out degree of each block under proposal
        d_in_new : ndarray (int)
                    the new in degree of each block under proposal

        Returns
        -------
        delta_entropy : float
                    entropy under the proposal minus the current entropy

        Notes
        -----
        - M^-: current edge count matrix between the blocks
        - M^+: new edge count matrix under the proposal
        - d^-_{t, in}, d^-_{t, out}: current in and out degree of block t
        - d^+_{t, in}, d^+_{t, out}: new in and out degree of block t under the proposal

        The difference in entropy is computed as:

        \dot{S} = \sum_{t_1, t_2} {\left[ -M_{t_1 t_2}^+ \text{ln}\left(\frac{M_{t_1 t_2}^+}{d_{t_1, in}^+ d_{t_2, out}^+}\right) + M_{t_1 t_2}^- \text{ln}\left(\frac{M_{t_1 t_2}^-}{d_{t_1, in}^- d_{t_2, out}^-}\right)\right]}

        where the sum runs over all entries $(t_1, t_2)$ in rows and cols $r$ and $s$ of the edge count matrix. The
        r and s entries of the two columns are also entries of the two rows, so they are dropped from the column sums.
        Zero entries contribute nothing and are never passed to the log."""

    if sbm_config.verify_degrees:
        B = M.shape[0]
        for name, v in (("M_r_row", M_r_row), ("M_s_row", M_s_row), ("M_r_col", M_r_col), ("M_s_col", M_s_col),
                        ("d_out_new", d_out_new), ("d_in_new", d_in_new)):
            check_vector_shape(v, B, name)
        check_block_degrees(M, d_out, d_in)
        _check_new_degrees(r, s, M_r_row, M_s_row, M_r_col, M_s_col, d_out_new, d_in_new)

    M_r_t1 = M[r, :]
    M_s_t1 = M[s, :]
    M_t2_r = M[:, r]
    M_t2_s = M[:, s]

    d0 = entropy_row_calc(M_r_row, d_out_new, d_in_new[r])
    d1 = entropy_row_calc(M_s_row, d_out_new, d_in_new[s])
    d2 = entropy_row_calc_ignore(M_r_col, d_in_new, d_out_new[r], r, s)
    d3 = entropy_row_calc_ignore(M_s_col, d_in_new, d_out_new[s], r, s)
    d4 = entropy_row_calc(M_r_t1, d_out, d_in[r])
    d5 = entropy_row_calc(M_s_t1, d_out, d_in[s])
    d6 = entropy_row_calc_ignore(M_t2_r, d_in, d_out[r], r, s)
    d7 = entropy_row_calc_ignore(M_t2_s, d_in, d_out[s], r, s)
    return -d0 - d1 - d2 - d3 + d4 + d5 + d6 + d7


def compute_delta_entropy_reference(r, s, M, M_r_row, M_s_row, M_r_col, M_s_col, d_out, d_in, d_out_new, d_in_new):
    """Cell by cell version of ``compute_delta_entropy_alt``, used to cross-check it."""
    def term(count, degree_in, degree_out):
        return count * np.log(count / float(degree_in) / float(degree_out))

    delta = 0.0
    for col, block, degree_in in ((M_r_col, r, d_in_new), (M_s_col, s, d_in_new)):
        for t1 in col.nonzero()[0]:
            if t1 in (r, s):
                continue
            delta -= term(col[t1], degree_in[t1], d_out_new[block])
    for row, block in ((M_r_row, r), (M_s_row, s)):
        for t2 in row.nonzero()[0]:
            delta -= term(row[t2], d_in_new[block], d_out_new[t2])
    for t2 in (r, s):
        for t1 in M[:, t2].nonzero()[0]:
            if t1 in (r, s):
                continue
            delta += term(M[t1, t2], d_in[t1], d_out[t2])
    for t1 in (r, s):
        for t2 in M[t1, :].nonzero()[0]:
            delta += term(M[t1, t2], d_in[t1], d_out[t2])
    return delta


def compute_delta_entropy_verify(r, s, M, M_r_row, M_s_row, M_r_col, M_s_col, d_out, d_in, d_out_new, d_in_new):
    delta_entropy1 = compute_delta_entropy_reference(r, s, M, M_r_row, M_s_row, M_r_col, M_s_col, d_out, d_in, d_out_new, d_in_new)
    delta_entropy2 = compute_delta_entropy_alt(r, s, M, M_r_row, M_s_row, M_r_col, M_s_col, d_out, d_in, d_out_new, d_in_new)
    assert_close(delta_entropy1, delta_entropy2)
    return delta_entropy2


def compute_delta_entropy(r, s, M, M_r_row, M_s_row, M_r_col, M_s_col, d_out, d_in, d_out_new, d_in_new):
    if sbm_config.verify_delta_entropy:
        return compute_delta_entropy_verify(r, s, M, M_r_row, M_s_row, M_r_col, M_s_col, d_out, d_in, d_out_new, d_in_new)
    return compute_delta_entropy_alt(r, s, M, M_r_row, M_s_row, M_r_col, M_s_col, d_out, d_in, d_out_new, d_in_new)


def compute_delta_entropy_for_move(M, move, d_out, d_in, d):
    """Score a SingleMove or AgglomerativeMerge against the current matrix

        Returns
        -------
        delta_entropy : float
                    entropy under the proposal minus the current entropy
        result : MoveResult
                    the new rows and columns of r and s, to be passed to ``apply_move`` if the move is accepted
        new_degrees : tuple of ndarray (int)
                    d_out_new, d_in_new, d_new under the proposal"""
    r, s = move.r, move.s
    result = compute_new_rows_cols_interblock_edge_count_matrix(M, move)
    if r == s:
        return 0.0, result, (d_out.copy(), d_in.copy(), d.copy())
    k_out, k_in, k = compute_move_degrees(M, move)
    d_out_new, d_in_new, d_new = compute_new_block_degrees(r, s, d_out, d_in, d, k_out, k_in, k)
    delta_entropy = compute_delta_entropy(r, s, M, result.M_r_row, result.M_s_row, result.M_r_col, result.M_s_col,
                                          d_out, d_in, d_out_new, d_in_new)
    return delta_entropy, result, (d_out_new, d_in_new, d_new)


if __name__ == '__main__':
    import argparse
    import timeit
    from interblock_edge_count import initialize_edge_counts
    from interblock_update import AgglomerativeMerge

    parser = argparse.ArgumentParser(description="Time delta entropy evaluations for block merges on a random graph")
    parser.add_argument("-N", "--nodes", type=int, default=2000)
    parser.add_argument("-E", "--edges", type=int, default=20000)
    parser.add_argument("-B", "--blocks", type=int, default=64)
    parser.add_argument("-n", "--iterations", type=int, default=10000)
    parser.add_argument("-S", "--seed", type=int, default=0)
    args = parser.parse_args()

    rng = np.random.RandomState(args.seed)
    edges = zip(rng.randint(args.nodes, size=args.edges), rng.randint(args.nodes, size=args.edges))
    b = rng.randint(args.blocks, size=args.nodes)
    M, d_out, d_in, d = initialize_edge_counts(list(edges), args.blocks, b)

    t0 = timeit.default_timer()
    for i in range(args.iterations):
        r = i % args.blocks
        move = AgglomerativeMerge(r, (r + 1) % args.blocks)
        delta_entropy, _, _ = compute_delta_entropy_for_move(M, move, d_out, d_in, d)
    t1 = timeit.default_timer()
    print("%d merges: %3.4f sec last delta_entropy = %s" % (args.iterations, t1 - t0, delta_entropy))
