import math
import numpy as np
import matplotlib.pyplot as plt
from sklearn.metrics import confusion_matrix

from fashion_data import CLASS_NAMES, IMAGE_SIZE


def _as_images(images):
    x = np.asarray(images)
    return x.reshape(len(x), IMAGE_SIZE, IMAGE_SIZE)


def _finish(fig, path):
    fig.tight_layout()
    if path is not None:
        fig.savefig(path, dpi=100)
    return fig


def plot_samples(images, labels, class_names=CLASS_NAMES, n=25, path=None):
    images, labels = _as_images(images)[:n], np.asarray(labels)[:n]
    side = math.ceil(math.sqrt(len(images)))
    fig, axs = plt.subplots(side, side, figsize=(2 * side, 2 * side), squeeze=False)
    for i, ax in enumerate(axs.flatten()):
        ax.axis("off")
        if i < len(images):
            ax.imshow(images[i], cmap=plt.cm.binary)
            ax.set_title(class_names[labels[i]], fontsize=9)
    return _finish(fig, path)


def plot_history(history, path=None):
    fig, (ax_loss, ax_acc) = plt.subplots(1, 2, figsize=(11, 4))
    for ax, key, title in ((ax_loss, "loss", "Loss"), (ax_acc, "accuracy", "Accuracy")):
        epochs = range(1, len(history[key]) + 1)
        ax.plot(epochs, history[key], label="train")
        if history.get("val_" + key):
            ax.plot(epochs, history["val_" + key], label="validation")
        ax.set_xlabel("epoch"); ax.set_ylabel(key); ax.set_title(title)
        ax.legend()
    return _finish(fig, path)


def plot_confusion_matrix(y_true, y_pred, class_names=CLASS_NAMES, normalize=False, path=None):
    """Heat map of true (rows) vs predicted (columns) classes.

    With normalize=True each row is divided by its support so cells read as
    per-class recall; rows without samples stay zero.
    """
    labels = list(range(len(class_names)))
    cm = confusion_matrix(y_true, y_pred, labels=labels)
    if normalize:
        support = cm.sum(axis=1, keepdims=True)
        cm = np.divide(cm, support, out=np.zeros(cm.shape), where=support > 0)

    fig, ax = plt.subplots(figsize=(9, 8))
    im = ax.imshow(cm, interpolation="nearest", cmap=plt.cm.Blues)
    fig.colorbar(im, ax=ax)
    ax.set_xticks(labels); ax.set_yticks(labels)
    ax.set_xticklabels(class_names, rotation=45, ha="right")
    ax.set_yticklabels(class_names)
    ax.set_xlabel("predicted"); ax.set_ylabel("true")
    ax.set_title("Confusion matrix" + (" (normalized)" if normalize else ""))

    fmt = ".2f" if normalize else "d"
    thresh = cm.max() / 2.0
    for i in labels:
        for j in labels:
            ax.text(j, i, format(cm[i, j], fmt), ha="center", va="center", fontsize=8,
                    color="white" if cm[i, j] > thresh else "black")
    return _finish(fig, path), cm


def plot_predictions(images, labels, probs, class_names=CLASS_NAMES, n=15, cols=3, path=None):
    images, labels, probs = _as_images(images)[:n], np.asarray(labels)[:n], np.asarray(probs)[:n]
    rows = math.ceil(len(images) / cols)
    fig, axs = plt.subplots(rows, 2 * cols, figsize=(4 * cols, 2 * rows), squeeze=False)
    for ax in axs.flatten():
        ax.axis("off")
    for i in range(len(images)):
        r, c = divmod(i, cols)
        ax_img, ax_bar = axs[r, 2 * c], axs[r, 2 * c + 1]
        pred = int(probs[i].argmax())
        color = "blue" if pred == labels[i] else "red"

        ax_img.imshow(images[i], cmap=plt.cm.binary)
        ax_img.set_title(f"{class_names[pred]} {100 * probs[i][pred]:.0f}% ({class_names[labels[i]]})",
                         fontsize=8, color=color)

        ax_bar.axis("on")
        bars = ax_bar.bar(range(len(class_names)), probs[i], color="#777777")
        bars[pred].set_color("red")
        bars[labels[i]].set_color("blue")
        ax_bar.set_ylim(0, 1)
        ax_bar.set_xticks([]); ax_bar.set_yticks([])
    return _finish(fig, path)
