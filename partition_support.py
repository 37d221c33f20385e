""" Partition level quantities of the degree corrected stochastic block model: the overall entropy (description length)
    of a partition, the Hastings correction for the neighbor based proposals, and the proposal distribution itself.

    References
    ----------
        .. [1] Peixoto, Tiago P. 'Entropy of stochastic blockmodel ensembles.'
               Physical Review E 85, no. 5 (2012): 056122.
        .. [2] Peixoto, Tiago P. 'Parsimonious module inference in large networks.'
               Physical review letters 110, no. 14 (2013): 148701.
        .. [3] Peixoto, Tiago P. 'Efficient Monte Carlo and greedy heuristic for the inference of stochastic block
               models.' Physical Review E 89, no. 1 (2014): 012804."""
import logging

import numpy as np

import sbm_config
from block_count_map import as_block_count_map, union_blocks
from interblock_edge_count import check_block_degrees
from sbm_errors import DegenerateLog, check_matrix_shape, check_vector_shape

log = logging.getLogger(__name__)


def compute_data_entropy(M, d_out, d_in):
    """Data part of the overall entropy, summed over the non-zero entries of M."""
    d_out = np.asarray(d_out)
    d_in = np.asarray(d_in)
    if sbm_config.verify_degrees:
        check_block_degrees(M, d_out, d_in)
    rows, cols = M.nonzero()
    edge_count_entries = M[rows, cols].astype(float)
    denominator = (d_in[rows] * d_out[cols]).astype(float)
    if sbm_config.check_log_arguments and ((edge_count_entries < 0).any() or (denominator <= 0).any()):
        raise DegenerateLog("Entropy term with a non-positive count or degree")
    entries = edge_count_entries * np.log(edge_count_entries / denominator)
    return -np.sum(entries)


def compute_overall_entropy(M, d_out, d_in, B, N, E):
    r"""Compute the overall entropy, including the model entropy as well as the data entropy, on the current partition.
       The best partition with an optimal number of blocks will minimize this entropy.

        Parameters
        ----------
        M : ndarray (int), shape = (#blocks, #blocks)
                    edge count matrix between all the blocks.
        d_out : ndarray (int)
                    the current out degrees of each block
        d_in : ndarray (int)
                    the current in degrees of each block
        B : int
                    the number of blocks in the partition
        N : int
                    number of nodes in the graph
        E : int
                    number of edges in the graph (total edge weight)

        Returns
        -------
        S : float
                    the overall entropy of the current partition

        Notes
        -----
        - M: current edge count matrix, M_{t_1 t_2} being the weight from block t_2 into block t_1
        - d_{t, out}: current out degree of block t
        - d_{t, in}: current in degree of block t
        - B: number of blocks
        - C: some constant invariant to the partition

        The overall entropy of the partition is computed as:

        S = E\;h\left(\frac{B^2}{E}\right) + N \ln(B) - \sum_{t_1, t_2} {M_{t_1 t_2} \ln\left(\frac{M_{t_1 t_2}}{d_{t_1, in} d_{t_2, out}}\right)} + C

        where the function h(x)=(1+x)\ln(1+x) - x\ln(x) and the sum runs over all entries (t_1, t_2) in the edge count matrix"""

    check_matrix_shape(M, B)
    if E <= 0:
        raise ValueError("The overall entropy needs a graph with positive total edge weight, got E = %s" % E)

    data_S = compute_data_entropy(M, d_out, d_in)

    model_S_term = B**2 / float(E)
    model_S = E * (1 + model_S_term) * np.log(1 + model_S_term) - model_S_term * np.log(model_S_term) + N*np.log(B)
    S = model_S + data_S
    log.debug("Overall entropy for %d blocks: model %s data %s", B, model_S, data_S)
    return S


def compute_multinomial_probs(M, d, block):
    """Probability of proposing each block as a neighbor of ``block``

        Each block is weighted by the edge weight it shares with ``block`` in either direction, normalized by the total
        degree of ``block``. A block with no edges gets an all zero vector."""
    weights = (M[:, block] + M[block, :]).astype(float)
    if d[block] == 0:
        return np.zeros(weights.shape)
    return weights / float(d[block])


def compute_Hastings_correction(s, M, M_r_row, M_r_col, B, d, d_new, out_map, in_map):
    r"""Compute the Hastings correction for the proposed block from the current block

        Parameters
        ----------
        s : int
                    proposed block assignment for the node under consideration
        M : ndarray (int), shape = (#blocks, #blocks)
                    edge count matrix between all the blocks.
        M_r_row : ndarray (int)
                    the current block row of the new edge count matrix under proposal
        M_r_col : ndarray (int)
                    the current block col of the new edge count matrix under proposal
        B : int
                    total number of blocks
        d : ndarray (int)
                    total number of edges to and from each block
        d_new : ndarray (int)
                    new block degrees under the proposal
        out_map : block_count_map
                    edge weight from the moved node to each neighboring block
        in_map : block_count_map
                    edge weight from each neighboring block to the moved node

        Returns
        -------
        Hastings_correction : float
                    term that corrects for the transition asymmetry between the current block and the proposed block

        Notes
        -----
        - p_{i, s \rightarrow r} : for node i, probability of proposing block r if its current block is s
        - p_{i, r \rightarrow s} : for node i, probability of proposing block s if its current block is r
        - M^-: current edge count matrix between the blocks
        - M^+: new edge count matrix under the proposal
        - d^-_t, d^+_t: current and new degree of block t
        - k_{i,t} : the degree of node i to block t (i.e. number of edges to and from block t)
        - B : the number of blocks

        The Hastings correction is:

        \frac{p_{i, s \rightarrow r}}{p_{i, r \rightarrow s}}

        where

        p_{i, r \rightarrow s} = \sum_{t} \left[ {k_{i,t} \frac{M_{ts}^- + M_{st}^- + 1}{d^-_t+B}}\right]

        p_{i, s \rightarrow r} = \sum_{t} \left[ {k_{i,t} \frac{M_{tr}^+ + M_{rt}^+ +1}{d_t^++B}}\right]

        summed over all the neighboring blocks t. The common 1/k_i factor cancels in the ratio and is left out."""

    if sbm_config.verify_degrees:
        check_matrix_shape(M, B)
        for name, v in (("M_r_row", M_r_row), ("M_r_col", M_r_col), ("d", d), ("d_new", d_new)):
            check_vector_shape(v, B, name)

    out_map = as_block_count_map(out_map)
    in_map = as_block_count_map(in_map)
    t = union_blocks(out_map, in_map)
    if len(t) == 0:
        return 1.0
    count = np.fromiter((out_map[i] + in_map[i] for i in t), dtype=float, count=len(t))
    d = np.asarray(d)
    d_new = np.asarray(d_new)
    B = float(B)

    p_forward = np.sum(count * (M[t, s] + M[s, t] + 1) / (d[t] + B))
    p_backward = np.sum(count * (M_r_row[t] + M_r_col[t] + 1) / (d_new[t] + B))
    return p_backward / p_forward
