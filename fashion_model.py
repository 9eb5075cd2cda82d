import torch.nn as nn

from fashion_data import NUM_FEATURES


class FashionMLP(nn.Module):
    """Dense(512) -> Dropout -> Dense(512) -> Dropout -> Dense(10).

    Emits logits; CrossEntropyLoss applies the softmax during training.
    """
    def __init__(self, in_dim=NUM_FEATURES, hidden=512, dropout=0.2, num_classes=10):
        super().__init__()
        self.net = nn.Sequential(
            nn.Flatten(),
            nn.Linear(in_dim, hidden), nn.ReLU(),
            nn.Dropout(dropout),
            nn.Linear(hidden, hidden), nn.ReLU(),
            nn.Dropout(dropout),
            nn.Linear(hidden, num_classes),
        )
    def forward(self, x): return self.net(x)


def count_parameters(model):
    return sum(p.numel() for p in model.parameters() if p.requires_grad)


def summary(model, show=True):
    """Rows of (layer, output width, params) for the Linear/Dropout stack."""
    rows, width, seen = [], None, {}
    for layer in model.net:
        if isinstance(layer, nn.Linear):
            kind, width, n = "dense", layer.out_features, count_parameters(layer)
        elif isinstance(layer, nn.Dropout):
            kind, n = "dropout", 0
        else:
            continue
        k = seen.get(kind, 0)
        seen[kind] = k + 1
        rows.append((kind if k == 0 else f"{kind}_{k}", width, n))
    total = count_parameters(model)
    if show:
        print(f"{'Layer':<14}{'Output':>8}{'Params':>10}")
        for name, out, n in rows:
            print(f"{name:<14}{out:>8}{n:>10,}")
        print(f"Total params: {total:,}")
    return rows, total
