""" Run-time switches for the interblock edge count engine.

    These are plain module attributes, read at call time, so they can be flipped globally
    (``sbm_config.verify_degrees = True``) or for a block of code with ``override``."""
from contextlib import contextmanager

# Recompute the block degrees from M on every entropy evaluation and fail on any drift.
verify_degrees = False

# Cross-check the vectorized delta entropy against the cell-by-cell reference.
verify_delta_entropy = False

# Raise DegenerateLog instead of returning nan/inf when a log argument is not positive.
check_log_arguments = True

_FLAGS = ("verify_degrees", "verify_delta_entropy", "check_log_arguments")


@contextmanager
def override(**flags):
    unknown = set(flags) - set(_FLAGS)
    if unknown:
        raise KeyError("Unknown setting(s): %s" % ", ".join(sorted(unknown)))
    module = globals()
    saved = {k: module[k] for k in flags}
    module.update(flags)
    try:
        yield
    finally:
        module.update(saved)
