import numpy as np
import pytest

from interblock_edge_count import build_neighbor_lists, initialize_edge_counts


def random_graph(N=30, E=150, B=4, seed=0, self_loops=5):
    """Random weighted multigraph with a few self loops and a random partition into B blocks."""
    rng = np.random.RandomState(seed)
    src = rng.randint(N, size=E)
    dst = rng.randint(N, size=E)
    dst[:self_loops] = src[:self_loops]
    weight = rng.randint(1, 4, size=E)
    edges = list(zip(src.tolist(), dst.tolist(), weight.tolist()))
    b = rng.randint(B, size=N)
    return edges, b


class GraphState(object):
    def __init__(self, edges, N, B, b):
        self.edges = edges
        self.N = N
        self.B = B
        self.b = np.array(b)
        self.E = sum(e[2] for e in edges)
        self.out_neighbors, self.in_neighbors = build_neighbor_lists(edges, N)
        self.M, self.d_out, self.d_in, self.d = initialize_edge_counts(edges, B, self.b)


@pytest.fixture
def ring():
    """0 -> 1 -> 2 -> 3 -> 0, vertices {0, 1} in block 0 and {2, 3} in block 1."""
    edges = [(0, 1, 1), (1, 2, 1), (2, 3, 1), (3, 0, 1)]
    return GraphState(edges, 4, 2, [0, 0, 1, 1])


@pytest.fixture
def self_loop_graph():
    """Vertex 0 has a self loop and edges into both blocks."""
    edges = [(0, 0, 2), (0, 1, 1), (1, 0, 1), (0, 2, 1), (2, 0, 3)]
    return GraphState(edges, 3, 2, [0, 0, 1])


@pytest.fixture(params=[0, 1, 2])
def random_state(request):
    edges, b = random_graph(seed=request.param)
    return GraphState(edges, 30, 4, b)
