"""
test_fashion_plots.py
~~~~~~~~~~~~~~~~~~~~~

Unit tests for the figures.
"""

import numpy as np
import pytest

from fashion_data import CLASS_NAMES
from fashion_plots import plot_samples, plot_history, plot_confusion_matrix, plot_predictions


@pytest.mark.unit
class TestPlotSamples:

    def test_grid_captions_use_class_names(self, train_split):
        images, labels = train_split
        fig = plot_samples(images, labels, n=9)

        titles = [ax.get_title() for ax in fig.axes]
        assert len(fig.axes) == 9
        assert titles == [CLASS_NAMES[y] for y in labels[:9]]

    def test_saves_to_path(self, train_split, tmp_path):
        path = tmp_path / "samples.png"
        plot_samples(*train_split, path=str(path))
        assert path.exists()

    def test_accepts_flat_images(self, train_split):
        images, labels = train_split
        fig = plot_samples(images.reshape(len(images), 784), labels, n=4)
        assert len(fig.axes) == 4


@pytest.mark.unit
class TestPlotHistory:

    def test_train_and_validation_curves(self):
        history = {"loss": [1.0, 0.5], "accuracy": [0.6, 0.8],
                   "val_loss": [1.1, 0.7], "val_accuracy": [0.55, 0.75]}
        fig = plot_history(history)

        ax_loss, ax_acc = fig.axes
        assert len(ax_loss.lines) == 2
        assert list(ax_acc.lines[1].get_ydata()) == [0.55, 0.75]

    def test_without_validation(self):
        fig = plot_history({"loss": [1.0], "accuracy": [0.5], "val_loss": [], "val_accuracy": []})
        assert all(len(ax.lines) == 1 for ax in fig.axes)


@pytest.mark.unit
class TestPlotConfusionMatrix:

    def test_counts(self):
        y_true = [0, 0, 1, 2, 2, 2]
        y_pred = [0, 1, 1, 2, 2, 0]
        fig, cm = plot_confusion_matrix(y_true, y_pred)

        assert cm.shape == (10, 10)
        assert cm[0, 0] == 1 and cm[0, 1] == 1
        assert cm[2, 2] == 2 and cm[2, 0] == 1
        assert cm.sum() == 6

    def test_normalized_rows(self, tmp_path):
        path = tmp_path / "cm.png"
        fig, cm = plot_confusion_matrix([0, 0, 1, 1], [0, 1, 1, 1], normalize=True, path=str(path))

        assert cm[0].tolist()[:2] == [0.5, 0.5]
        assert cm[1, 1] == 1.0
        # classes without samples stay zero
        assert cm[5].sum() == 0.0
        assert path.exists()


@pytest.mark.unit
def test_plot_predictions_colors_mistakes(test_split):
    images, labels = test_split
    probs = np.zeros((4, 10))
    probs[np.arange(4), labels[:4]] = 1.0
    probs[3] = np.roll(probs[3], 1)

    fig = plot_predictions(images, labels, probs, n=4, cols=2)

    img_axes = fig.axes[0::2]
    colors = [ax.title.get_color() for ax in img_axes[:4]]
    assert colors == ["blue", "blue", "blue", "red"]


@pytest.mark.unit
def test_confusion_matrix_text_contrast():
    fig, cm = plot_confusion_matrix([0, 0, 0, 1], [0, 0, 0, 1])

    ax = fig.axes[0]
    colors = {t.get_text(): t.get_color() for t in ax.texts if t.get_text() in ("3", "1")}
    assert colors == {"3": "white", "1": "black"}
