"""
conftest.py
~~~~~~~~~~~

Shared fixtures: small synthetic Fashion-MNIST-shaped datasets so no test
has to download the real one.
"""

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest


def _make_split(n_per_class, seed):
    """uint8 images whose brightest row encodes the class, so a tiny MLP can learn them."""
    rng = np.random.default_rng(seed)
    labels = np.repeat(np.arange(10), n_per_class)
    images = rng.integers(0, 40, size=(len(labels), 28, 28)).astype(np.uint8)
    for i, y in enumerate(labels):
        images[i, 2 + 2 * y, :] = 255
    order = rng.permutation(len(labels))
    return images[order], labels[order].astype(np.int64)


@pytest.fixture
def train_split():
    return _make_split(n_per_class=20, seed=0)


@pytest.fixture
def test_split():
    return _make_split(n_per_class=5, seed=1)


@pytest.fixture(autouse=True)
def close_figures():
    import matplotlib.pyplot as plt
    yield
    plt.close("all")
