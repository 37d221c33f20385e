import numpy as np


class block_count_map(dict):
    """Sparse map from block id to signed edge weight.

    Missing blocks read as zero and storing a zero removes the entry, so the keys are always exactly the blocks with a
    non-zero contribution."""

    def __init__(self, *args, **kwargs):
        dict.__init__(self)
        self.update(*args, **kwargs)

    def __setitem__(self, block, count):
        if count == 0:
            try:
                del self[block]
            except KeyError:
                pass
        else:
            dict.__setitem__(self, int(block), int(count))

    def __getitem__(self, block):
        try:
            return dict.__getitem__(self, block)
        except KeyError:
            return 0

    def get(self, block, default=0):
        return dict.get(self, block, default)

    def add(self, block, count):
        self[block] = self[block] + count

    def update(self, other=(), **kwargs):
        for k, v in dict(other, **kwargs).items():
            self[k] = v

    def copy(self):
        return block_count_map(self)

    def blocks(self):
        return np.fromiter(dict.keys(self), dtype=int, count=len(self))

    def counts(self):
        return np.fromiter(dict.values(self), dtype=int, count=len(self))

    def total(self):
        return int(sum(dict.values(self)))

    @classmethod
    def from_blocks(cls, blocks, weights=None):
        """Accumulate weights per block; repeated blocks are summed."""
        blocks = np.asarray(blocks, dtype=int).ravel()
        if weights is None:
            weights = np.ones(blocks.shape, dtype=int)
        if len(blocks) == 0:
            return cls()
        k, inverse_idx = np.unique(blocks, return_inverse=True)
        count = np.bincount(inverse_idx.ravel(), weights=np.asarray(weights).ravel()).astype(int)
        d = cls()
        for block, c in zip(k, count):
            d[block] = c
        return d


def union_blocks(*maps):
    """Sorted array of every block present in any of the maps."""
    if not maps:
        return np.empty((0,), dtype=int)
    return np.unique(np.concatenate([m.blocks() for m in maps]))


def as_block_count_map(counts):
    if isinstance(counts, block_count_map):
        return counts
    return block_count_map(counts)
