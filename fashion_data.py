import numpy as np
import torch
from torch.utils.data import DataLoader, TensorDataset
from torchvision import datasets
from sklearn.model_selection import train_test_split

CLASS_NAMES = ["T-shirt/top", "Trouser", "Pullover", "Dress", "Coat",
               "Sandal", "Shirt", "Sneaker", "Bag", "Ankle boot"]
IMAGE_SIZE = 28
NUM_FEATURES = IMAGE_SIZE * IMAGE_SIZE


def load_fashion_mnist(root="./data", download=True):
    """Return ((train_images, train_labels), (test_images, test_labels)).

    Images come back as uint8 arrays of shape (N, 28, 28), labels as int64.
    """
    train = datasets.FashionMNIST(root, train=True, download=download)
    test = datasets.FashionMNIST(root, train=False, download=download)
    return ((train.data.numpy(), train.targets.numpy().astype(np.int64)),
            (test.data.numpy(), test.targets.numpy().astype(np.int64)))


def flatten_images(images):
    """(N, 28, 28) pixels in 0..255 -> (N, 784) float32 in 0..1."""
    x = np.asarray(images)
    if x.ndim == 3 and x.shape[1:] == (IMAGE_SIZE, IMAGE_SIZE):
        x = x.reshape(len(x), NUM_FEATURES)
    elif not (x.ndim == 2 and x.shape[1] == NUM_FEATURES):
        raise ValueError(f"expected images of shape (N, 28, 28) or (N, 784), got {x.shape}")
    return x.astype(np.float32) / 255.0


def to_tensors(images, labels):
    X = torch.from_numpy(flatten_images(images))
    y = torch.as_tensor(np.asarray(labels), dtype=torch.long)
    if X.size(0) != y.numel():
        raise ValueError(f"{X.size(0)} images but {y.numel()} labels")
    if y.numel() and (y.min() < 0 or y.max() >= len(CLASS_NAMES)):
        raise ValueError(f"labels must lie in 0..{len(CLASS_NAMES) - 1}, "
                         f"got {y.min().item()}..{y.max().item()}")
    return X, y


def split_train_val(images, labels, val_fraction=0.1, seed=0):
    """Stratified hold-out split.

    A fraction of 0 keeps everything for training and returns an empty
    validation pair.
    """
    if not 0.0 <= val_fraction < 1.0:
        raise ValueError(f"val_fraction must be in [0, 1), got {val_fraction}")
    images, labels = np.asarray(images), np.asarray(labels)
    if val_fraction == 0.0:
        return (images, labels), (images[:0], labels[:0])
    X_tr, X_va, y_tr, y_va = train_test_split(
        images, labels, test_size=val_fraction, random_state=seed, stratify=labels)
    return (X_tr, y_tr), (X_va, y_va)


def make_loader(images, labels, batch_size=256, shuffle=False):
    return DataLoader(TensorDataset(*to_tensors(images, labels)), batch_size=batch_size, shuffle=shuffle)


def make_loaders(train, val, batch_size=128):
    """Shuffled training loader, ordered evaluation loader."""
    return (make_loader(*train, batch_size=batch_size, shuffle=True),
            make_loader(*val, batch_size=batch_size * 2))
