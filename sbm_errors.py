""" Error types raised by the interblock edge count engine.

    All of these signal broken invariants rather than recoverable conditions. They are raised as soon as the problem is
    detected and the caller decides whether to abandon the candidate move or the whole partitioning run."""
import numpy as np


class InterblockError(Exception):
    pass


class ShapeMismatch(InterblockError, ValueError):
    """A matrix or vector does not have the B x B (or length B) shape the computation assumes."""
    pass


class DegenerateLog(InterblockError, ArithmeticError):
    """A log term was about to be evaluated on a non-positive count or degree."""
    pass


class InconsistentDegree(InterblockError):
    """Cached block degrees no longer match the interblock edge count matrix."""
    pass


def assert_close(x, y, tol=1e-9):
    if np.abs(x - y) > tol:
        raise AssertionError("Equality assertion failed: %s %s" % (x, y))


def check_matrix_shape(M, B):
    if M.ndim != 2 or M.shape != (B, B):
        raise ShapeMismatch("Interblock matrix has shape %s, expected (%d, %d)" % (M.shape, B, B))


def check_vector_shape(v, B, name="vector"):
    if np.shape(v) != (B,):
        raise ShapeMismatch("%s has shape %s, expected (%d,)" % (name, np.shape(v), B))
