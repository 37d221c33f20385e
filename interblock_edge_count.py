""" Construction and bookkeeping of the interblock edge count matrix.

    Convention used throughout: ``M[destination_block, source_block]`` holds the total weight of the edges whose
    destination vertex lies in ``destination_block`` and whose source vertex lies in ``source_block``. Row sums are
    therefore block in-degrees and column sums block out-degrees.

    References
    ----------
        .. [1] Peixoto, Tiago P. 'Entropy of stochastic blockmodel ensembles.'
               Physical Review E 85, no. 5 (2012): 056122.
        .. [2] Karrer, Brian, and Mark EJ Newman. 'Stochastic blockmodels and community structure in networks.'
               Physical Review E 83, no. 1 (2011): 016107."""
import logging
import time

import numpy as np
import scipy.sparse

from sbm_errors import InconsistentDegree, InterblockError, check_matrix_shape, check_vector_shape

log = logging.getLogger(__name__)


def zeros_interblock_edge_matrix(B):
    return np.zeros((B, B), dtype=np.int64)


def _is_neighbor_lists(graph):
    return (isinstance(graph, (list, tuple)) and len(graph) > 0
            and all(isinstance(x, np.ndarray) and x.ndim == 2 for x in graph))


def edge_arrays(graph):
    """Collect the edges of a graph into parallel arrays

        Parameters
        ----------
        graph : scipy sparse matrix, list of ndarray, or iterable of tuples
                    either an adjacency matrix with ``A[source, destination] = weight``, a list of out neighbor arrays
                    where row ``[destination, weight]`` of element ``v`` is an edge leaving ``v``, or any iterable of
                    ``(source, destination[, weight])`` tuples

        Returns
        -------
        src : ndarray (int)
                    source vertex of each edge
        dst : ndarray (int)
                    destination vertex of each edge
        weight : ndarray (int)
                    weight of each edge; edges given without a weight count once"""

    if scipy.sparse.issparse(graph):
        A = graph.tocsr(copy=True)
        A.eliminate_zeros()
        A = A.tocoo()
        src, dst, weight = A.row, A.col, A.data
    elif _is_neighbor_lists(graph):
        src = np.concatenate([np.full(len(nbrs), v, dtype=int) for v, nbrs in enumerate(graph)])
        dst = np.concatenate([nbrs[:, 0] for nbrs in graph])
        weight = np.concatenate([nbrs[:, 1] if nbrs.shape[1] > 1 else np.ones(len(nbrs), dtype=int)
                                 for nbrs in graph])
    else:
        edges = [tuple(e) for e in graph]
        if any(len(e) not in (2, 3) for e in edges):
            raise ValueError("Edges must be (source, destination) or (source, destination, weight) tuples")
        src = np.array([e[0] for e in edges])
        dst = np.array([e[1] for e in edges])
        weight = np.array([e[2] if len(e) == 3 else 1 for e in edges])

    for endpoints in (src, dst):
        if (np.asarray(endpoints).astype(np.int64) != np.asarray(endpoints)).any():
            raise ValueError("Edge endpoints must be integer vertex ids")
    src = np.asarray(src, dtype=int)
    dst = np.asarray(dst, dtype=int)
    weight_i = np.asarray(weight).astype(np.int64)
    if (weight_i != np.asarray(weight)).any():
        raise ValueError("Edge weights must be integers")
    if (weight_i <= 0).any():
        raise ValueError("Edge weights must be positive")
    return src, dst, weight_i


def iterate_edges(graph):
    """Yield ``(source, destination, weight)`` for every edge of the graph."""
    src, dst, weight = edge_arrays(graph)
    for i, j, w in zip(src, dst, weight):
        yield int(i), int(j), int(w)


def build_neighbor_lists(graph, N):
    """Per vertex out and in neighbor arrays

        Returns
        -------
        out_neighbors : list of ndarray; list length is N, the number of nodes
                each element of the list is a ndarray of out neighbors, where the first column is the node indices
                and the second column the corresponding edge weights
        in_neighbors : list of ndarray; list length is N, the number of nodes
                each element of the list is a ndarray of in neighbors, in the same format"""
    src, dst, weight = edge_arrays(graph)
    if len(src) and max(src.max(), dst.max()) >= N:
        raise ValueError("Edge endpoint outside a graph of %d vertices" % N)
    out_neighbors = []
    in_neighbors = []
    for v in range(N):
        out_idx = np.nonzero(src == v)[0]
        in_idx = np.nonzero(dst == v)[0]
        out_neighbors.append(np.column_stack((dst[out_idx], weight[out_idx])).astype(int).reshape((-1, 2)))
        in_neighbors.append(np.column_stack((src[in_idx], weight[in_idx])).astype(int).reshape((-1, 2)))
    return out_neighbors, in_neighbors


def initialize_edge_counts(graph, B, b, M=None):
    """Initialize the edge count matrix and block degrees according to the current partition

        Parameters
        ----------
        graph : see ``edge_arrays``
                    the vertex level graph
        B : int
                    total number of blocks in the current partition
        b : ndarray (int)
                    array of block assignment for each node
        M : ndarray (int), shape = (#blocks, #blocks), optional
                    existing matrix to accumulate into

        Returns
        -------
        M : ndarray (int), shape = (#blocks, #blocks)
                    edge count matrix between all the blocks.
        d_out : ndarray (int)
                    the current out degree of each block
        d_in : ndarray (int)
                    the current in degree of each block
        d : ndarray (int)
                    the current total degree of each block

        Notes
        -----
        Every edge adds its weight to ``M[b[dst], b[src]]``; self loops and repeated edges accumulate."""

    log.debug("Initialize edge counts for size %d", B)
    t0 = time.time()

    b = np.asarray(b, dtype=int)
    if len(b) and (b.min() < 0 or b.max() >= B):
        raise ValueError("Partition values must lie in [0, %d)" % B)
    if M is None:
        M = zeros_interblock_edge_matrix(B)
    else:
        check_matrix_shape(M, B)

    src, dst, weight = edge_arrays(graph)
    if len(src):
        if max(src.max(), dst.max()) >= len(b) or min(src.min(), dst.min()) < 0:
            raise ValueError("Edge endpoint outside the partition of %d vertices" % len(b))
        # duplicate (row, col) pairs are summed by the conversion
        counts = scipy.sparse.coo_matrix((weight, (b[dst], b[src])), shape=(B, B), dtype=np.int64)
        M += counts.toarray()

    d_out, d_in, d = compute_block_degrees(M, B)

    log.debug("density(M) = %s", np.count_nonzero(M) / (B ** 2.) if B else 0.0)
    log.debug("M initialization took %s", time.time() - t0)
    return M, d_out, d_in, d


def compute_block_degrees(M, B):
    """Out, in and total degree of every block, read off the interblock matrix

        Returns
        -------
        d_out : ndarray (int)
                    column sums of M
        d_in : ndarray (int)
                    row sums of M
        d : ndarray (int)
                    d_out + d_in"""
    check_matrix_shape(M, B)
    d_out = np.asarray(M.sum(axis=0)).ravel()
    d_in = np.asarray(M.sum(axis=1)).ravel()
    d = d_out + d_in
    return d_out, d_in, d


def check_block_degrees(M, d_out, d_in, d=None):
    B = M.shape[0]
    check_matrix_shape(M, B)
    check_vector_shape(d_out, B, "d_out")
    check_vector_shape(d_in, B, "d_in")
    true_out, true_in, true_d = compute_block_degrees(M, B)
    for name, cached, true in (("d_out", d_out, true_out), ("d_in", d_in, true_in), ("d", d, true_d)):
        if cached is None:
            continue
        bad = np.nonzero(np.asarray(cached) != true)[0]
        if len(bad):
            log.warning("Stale %s for blocks %s", name, bad)
            raise InconsistentDegree("%s disagrees with M at blocks %s: cached %s, actual %s"
                                     % (name, bad, np.asarray(cached)[bad], true[bad]))


def compute_block_neighbors_and_degrees(M, block):
    """Neighbor blocks and degrees of a single block

        Returns
        -------
        neighbors : ndarray (int)
                    sorted blocks sharing non-zero edge weight with ``block`` in either direction
        k_out : int
                    weight leaving ``block`` (its column)
        k_in : int
                    weight entering ``block`` (its row)
        k : int
                    k_out + k_in"""
    out_neighbors = M[:, block].nonzero()[0]
    in_neighbors = M[block, :].nonzero()[0]
    neighbors = np.union1d(out_neighbors, in_neighbors)
    k_out = int(M[out_neighbors, block].sum())
    k_in = int(M[block, in_neighbors].sum())
    k = k_out + k_in
    return neighbors, k_out, k_in, k


def compute_new_block_degrees(r, s, d_out, d_in, d, k_out, k_in, k):
    """Compute the new block degrees under the proposal for the current node or block

        Parameters
        ----------
        r : int
                    current block assignment for the node under consideration
        s : int
                    proposed block assignment for the node under consideration
        d_out, d_in, d : ndarray (int)
                    the current out, in and total degree of each block
        k_out, k_in, k : int
                    the out, in and total degree of the node (or whole block, for a merge)

        Returns
        -------
        d_out_new, d_in_new, d_new : ndarray (int)
                    the degrees of each block under the proposal

        Notes
        -----
        Only the entries of the current and proposed block change. The inputs are left untouched."""
    new = []
    for old, degree in zip([d_out, d_in, d], [k_out, k_in, k]):
        new_d = np.array(old, copy=True)
        new_d[r] -= degree
        new_d[s] += degree
        new.append(new_d)
    return new


def update_partition(M, r, s, M_r_row, M_s_row, M_r_col, M_s_col):
    """Write the rows and columns of an accepted move into the interblock matrix

        Parameters
        ----------
        M : ndarray (int), shape = (#blocks, #blocks)
                    edge count matrix between all the blocks; modified in place
        r, s : int
                    current and proposed block
        M_r_row, M_s_row, M_r_col, M_s_col : ndarray (int)
                    rows and columns of blocks r and s after the move

        Returns
        -------
        M : ndarray (int), shape = (#blocks, #blocks)
                    the same matrix, after the move

        Notes
        -----
        This is the only function that writes to a live interblock matrix. The caller must hold it exclusively."""
    B = M.shape[0]
    check_matrix_shape(M, B)
    for name, v in (("M_r_row", M_r_row), ("M_s_row", M_s_row), ("M_r_col", M_r_col), ("M_s_col", M_s_col)):
        check_vector_shape(v, B, name)

    # the four r/s pair cells appear in two vectors each
    shared = ((M_r_row[r], M_r_col[r]), (M_s_row[s], M_s_col[s]), (M_r_row[s], M_s_col[r]), (M_r_col[s], M_s_row[r]))
    if any(a != b for a, b in shared):
        raise InterblockError("Rows and columns of blocks %d and %d disagree on their shared cells" % (r, s))

    M[r, :] = M_r_row
    M[s, :] = M_s_row
    M[:, r] = M_r_col
    M[:, s] = M_s_col
    log.debug("Committed move of mass from block %d to block %d", r, s)
    return M
