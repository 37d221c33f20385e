""" New rows and columns of the interblock edge count matrix under a proposed move.

    Two kinds of move are supported: moving a single vertex from block r to block s, and merging the whole of block r
    into block s. Both produce the same result shape, the rows and columns of r and s after the move. The live matrix is
    only read here; ``apply_move`` hands an accepted result to ``update_partition``."""
from collections import namedtuple
import logging

import numpy as np

from block_count_map import as_block_count_map, block_count_map
from interblock_edge_count import update_partition

log = logging.getLogger(__name__)

SingleMove = namedtuple("SingleMove", ["r", "s", "out_map", "in_map", "self_edge_weight"])
AgglomerativeMerge = namedtuple("AgglomerativeMerge", ["r", "s"])
MoveResult = namedtuple("MoveResult", ["M_r_row", "M_r_col", "M_s_row", "M_s_col"])


def single_move(r, s, out_map, in_map, self_edge_weight=0):
    return SingleMove(int(r), int(s), block_count_map(out_map), block_count_map(in_map), int(self_edge_weight))


def compute_vertex_block_counts(vertex, b, out_neighbors, in_neighbors):
    """Block counts of the edges incident to one vertex

        Parameters
        ----------
        vertex : int
                    the vertex to be moved
        b : ndarray (int)
                    array of block assignment for each node
        out_neighbors, in_neighbors : list of ndarray
                    neighbor arrays as returned by ``build_neighbor_lists``

        Returns
        -------
        out_map : block_count_map
                    weight of the vertex's out edges per destination block
        in_map : block_count_map
                    weight of the vertex's in edges per source block
        self_edge_weight : int
                    weight of edges from the vertex to itself
        k_out, k_in, k : int
                    the out, in and total degree of the vertex

        Notes
        -----
        A self loop is an out edge and an in edge at the same time, so it appears under the vertex's own block in
        both maps as well as in ``self_edge_weight``."""
    b = np.asarray(b)
    out_nbrs = out_neighbors[vertex]
    in_nbrs = in_neighbors[vertex]
    out_map = block_count_map.from_blocks(b[out_nbrs[:, 0]], out_nbrs[:, 1])
    in_map = block_count_map.from_blocks(b[in_nbrs[:, 0]], in_nbrs[:, 1])
    self_edge_weight = int(np.sum(out_nbrs[out_nbrs[:, 0] == vertex, 1]))
    k_out = out_map.total()
    k_in = in_map.total()
    return out_map, in_map, self_edge_weight, k_out, k_in, k_out + k_in


def vertex_move(vertex, s, b, out_neighbors, in_neighbors):
    """SingleMove for moving ``vertex`` from its current block to ``s``."""
    out_map, in_map, self_edge_weight, _, _, _ = compute_vertex_block_counts(vertex, b, out_neighbors, in_neighbors)
    return SingleMove(int(b[vertex]), int(s), out_map, in_map, self_edge_weight)


def compute_new_rows_cols_single(M, r, s, out_map, in_map, self_edge_weight):
    """Rows and columns of blocks r and s after moving one vertex from r to s

        Parameters
        ----------
        M : ndarray (int), shape = (#blocks, #blocks)
                    current edge count matrix between all the blocks
        r : int
                    current block of the vertex
        s : int
                    proposed block of the vertex
        out_map : block_count_map
                    weight of the vertex's out edges per destination block
        in_map : block_count_map
                    weight of the vertex's in edges per source block
        self_edge_weight : int
                    weight of the vertex's self loop, also counted under r in both maps

        Returns
        -------
        MoveResult

        Notes
        -----
        An out edge to block t moves from M[t, r] to M[t, s]; an in edge from block t moves from M[r, t] to M[s, t].
        When t is r or s the moved cell lies in a row of r or s as well and is patched there too. Treated like that, a
        self loop of weight w would end up as one r->s and one s->r edge with 2w taken off M[r, r]; the final step
        moves it to M[s, s] where it belongs, in every vector holding one of the four r/s pair cells."""
    M_r_row = M[r, :].copy()
    M_r_col = M[:, r].copy()
    M_s_row = M[s, :].copy()
    M_s_col = M[:, s].copy()

    if r == s:
        return MoveResult(M_r_row, M_r_col, M_s_row, M_s_col)

    out_map = as_block_count_map(out_map)
    in_map = as_block_count_map(in_map)
    w = int(self_edge_weight)
    if w < 0 or out_map[r] < w or in_map[r] < w:
        raise ValueError("Self edge weight %d must also be counted under block %d of both block count maps" % (w, r))

    if len(out_map):
        b_out, count_out = out_map.blocks(), out_map.counts()
        M_r_col[b_out] -= count_out
        M_s_col[b_out] += count_out
    M_r_row[r] -= out_map[r]
    M_r_row[s] += out_map[r]
    M_s_row[r] -= out_map[s]
    M_s_row[s] += out_map[s]

    if len(in_map):
        b_in, count_in = in_map.blocks(), in_map.counts()
        M_r_row[b_in] -= count_in
        M_s_row[b_in] += count_in
    M_r_col[r] -= in_map[r]
    M_r_col[s] += in_map[r]
    M_s_col[r] -= in_map[s]
    M_s_col[s] += in_map[s]

    if w:
        M_r_row[r] += w
        M_r_row[s] -= w
        M_r_col[r] += w
        M_r_col[s] -= w
        M_s_row[r] -= w
        M_s_row[s] += w
        M_s_col[r] -= w
        M_s_col[s] += w

    result = MoveResult(M_r_row, M_r_col, M_s_row, M_s_col)
    for v in result:
        if (v < 0).any():
            raise ValueError("Block count maps for the move %d -> %d are not consistent with M" % (r, s))
    return result


def compute_new_rows_cols_agglomerative(M, r, s):
    """Rows and columns of blocks r and s after merging all of block r into block s

        Notes
        -----
        After the merge there is no difference between edges inside r, edges between r and s and edges inside s, so
        M[r, r], M[r, s] and M[s, r] are all folded into M[s, s]. Row and column r are left empty."""
    if r == s:
        raise ValueError("Cannot merge block %d into itself" % r)
    B = M.shape[0]
    M_r_row = np.zeros(B, dtype=M.dtype)
    M_r_col = np.zeros(B, dtype=M.dtype)

    M_s_row = M[s, :] + M[r, :]
    M_s_row[r] = 0
    M_s_row[s] += M[r, r] + M[s, r]

    M_s_col = M[:, s] + M[:, r]
    M_s_col[r] = 0
    M_s_col[s] += M[r, r] + M[r, s]

    return MoveResult(M_r_row, M_r_col, M_s_row, M_s_col)


def compute_new_rows_cols_interblock_edge_count_matrix(M, move):
    if isinstance(move, SingleMove):
        return compute_new_rows_cols_single(M, move.r, move.s, move.out_map, move.in_map, move.self_edge_weight)
    elif isinstance(move, AgglomerativeMerge):
        return compute_new_rows_cols_agglomerative(M, move.r, move.s)
    raise TypeError("Unknown move type %s" % type(move).__name__)


def compute_block_counts(M, r):
    """Out and in block count maps of a whole block, for scoring a merge the way a vertex move is scored."""
    out_idx = M[:, r].nonzero()[0]
    in_idx = M[r, :].nonzero()[0]
    return block_count_map.from_blocks(out_idx, M[out_idx, r]), block_count_map.from_blocks(in_idx, M[r, in_idx])


def compute_block_merge_degrees(M, r):
    k_out = int(M[:, r].sum())
    k_in = int(M[r, :].sum())
    return k_out, k_in, k_out + k_in


def compute_move_degrees(M, move):
    """Out, in and total degree carried from r to s by the move."""
    if isinstance(move, SingleMove):
        k_out = as_block_count_map(move.out_map).total()
        k_in = as_block_count_map(move.in_map).total()
        return k_out, k_in, k_out + k_in
    elif isinstance(move, AgglomerativeMerge):
        return compute_block_merge_degrees(M, move.r)
    raise TypeError("Unknown move type %s" % type(move).__name__)


def apply_move(M, move, result):
    return update_partition(M, move.r, move.s, result.M_r_row, result.M_s_row, result.M_r_col, result.M_s_col)
