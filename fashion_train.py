import argparse
import json, os, random, time
from dataclasses import dataclass, asdict, fields

import numpy as np
import torch
import torch.nn as nn
import matplotlib.pyplot as plt
from sklearn.metrics import classification_report

from fashion_data import CLASS_NAMES, load_fashion_mnist, split_train_val, make_loader, make_loaders
from fashion_model import FashionMLP, summary
import fashion_plots

DEVICE = "cuda" if torch.cuda.is_available() else "cpu"

OPTIMIZERS = ("sgd", "adam", "adamw", "rmsprop")


@dataclass
class Config:
    seed: int = 123
    epochs: int = 20
    lr: float = 1e-3
    batch_size: int = 128
    hidden: int = 512
    dropout: float = 0.2
    optimizer: str = "rmsprop"
    val_fraction: float = 0.0
    data_dir: str = "./data"
    out_dir: str = "runs"

    def validate(self):
        if self.epochs <= 0:
            raise ValueError(f"epochs must be positive, got {self.epochs}")
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.lr <= 0:
            raise ValueError(f"lr must be positive, got {self.lr}")
        if not 0.0 <= self.dropout < 1.0:
            raise ValueError(f"dropout must be in [0, 1), got {self.dropout}")
        if not 0.0 <= self.val_fraction < 1.0:
            raise ValueError(f"val_fraction must be in [0, 1), got {self.val_fraction}")
        if self.optimizer.lower() not in OPTIMIZERS:
            raise ValueError(f"unknown optimizer {self.optimizer!r}, expected one of {OPTIMIZERS}")
        return self


def set_reproducible(seed: int):
    torch.manual_seed(seed)
    torch.cuda.manual_seed_all(seed)
    np.random.seed(seed)
    random.seed(seed)
    torch.backends.cudnn.deterministic = True
    torch.backends.cudnn.benchmark = False


def make_optimizer(name, params, lr):
    name = name.lower()
    if name == "sgd":
        return torch.optim.SGD(params, lr=lr, momentum=0.9)
    if name == "adam":
        return torch.optim.Adam(params, lr=lr)
    if name == "adamw":
        return torch.optim.AdamW(params, lr=lr, weight_decay=1e-2)
    if name == "rmsprop":
        return torch.optim.RMSprop(params, lr=lr)
    raise ValueError(f"unknown optimizer {name!r}, expected one of {OPTIMIZERS}")


def log_json(path, obj):
    with open(path, "a") as f:
        f.write(json.dumps(obj) + "\n")


def save_ckpt(cfg, model, opt, epoch, name=None):
    os.makedirs(cfg.out_dir, exist_ok=True)
    p = os.path.join(cfg.out_dir, name or f"epoch_{epoch}.pt")
    torch.save({"epoch": epoch, "config": asdict(cfg),
                "model": model.state_dict(), "opt": opt.state_dict()}, p)
    return p


def load_ckpt(path, model, opt=None):
    """Restore model (and optimizer) state in place; returns the checkpoint dict."""
    ckpt = torch.load(path, map_location=DEVICE)
    model.load_state_dict(ckpt["model"])
    if opt is not None:
        opt.load_state_dict(ckpt["opt"])
    return ckpt


def make_run_dir(out_dir):
    """Create a fresh run_<timestamp> directory; same-second runs get a numeric suffix."""
    os.makedirs(out_dir, exist_ok=True)
    base = os.path.join(out_dir, time.strftime("run_%Y%m%d_%H%M%S"))
    path, i = base, 0
    while True:
        try:
            os.makedirs(path)
            return path
        except FileExistsError:
            i += 1
            path = f"{base}_{i}"


def train_one_epoch(model, loader, opt, loss_fn):
    model.train()
    loss_sum, correct, n = 0.0, 0, 0
    for xb, yb in loader:
        xb, yb = xb.to(DEVICE), yb.to(DEVICE)
        opt.zero_grad(set_to_none=True)
        logits = model(xb)
        loss = loss_fn(logits, yb)
        loss.backward()
        opt.step()
        loss_sum += loss.item() * yb.size(0)
        correct += (logits.argmax(1) == yb).sum().item()
        n += yb.size(0)
    if n == 0:
        raise ValueError("cannot train on an empty loader")
    return loss_sum/n, correct/n


@torch.no_grad()
def evaluate(model, loader):
    model.eval()
    correct, total, loss_sum = 0, 0, 0.0
    ce = nn.CrossEntropyLoss()
    for X, y in loader:
        X, y = X.to(DEVICE), y.to(DEVICE)
        logits = model(X)
        loss = ce(logits, y)
        correct += (logits.argmax(1) == y).sum().item()
        total += y.numel()
        loss_sum += loss.item() * y.size(0)
    if total == 0:
        raise ValueError("cannot evaluate on an empty loader")
    return loss_sum/total, correct/total


@torch.no_grad()
def predict(model, loader):
    """Softmax probabilities (N, classes) and the matching true labels."""
    model.eval()
    probs, labels = [], []
    for X, y in loader:
        probs.append(torch.softmax(model(X.to(DEVICE)), dim=1).cpu())
        labels.append(y)
    return torch.cat(probs).numpy(), torch.cat(labels).numpy()


def fit(model, train_loader, val_loader, opt, epochs, log_path=None, on_epoch_end=None):
    """Train for a fixed number of epochs; returns the per-epoch history."""
    loss_fn = nn.CrossEntropyLoss()
    history = {"loss": [], "accuracy": [], "val_loss": [], "val_accuracy": []}
    for epoch in range(epochs):
        loss, acc = train_one_epoch(model, train_loader, opt, loss_fn)
        history["loss"].append(loss)
        history["accuracy"].append(acc)
        metrics = {"event": "epoch_end", "epoch": epoch, "loss": loss, "accuracy": acc}
        line = f"epoch={epoch:02d} loss={loss:.4f} acc={acc:.4f}"

        if val_loader is not None:
            val_loss, val_acc = evaluate(model, val_loader)
            history["val_loss"].append(val_loss)
            history["val_accuracy"].append(val_acc)
            metrics.update(val_loss=val_loss, val_accuracy=val_acc)
            line += f" val_loss={val_loss:.4f} val_acc={val_acc:.4f}"

        if on_epoch_end is not None:
            metrics["ckpt"] = on_epoch_end(epoch)
        if log_path is not None:
            log_json(log_path, metrics)
        print(line)
    return history


def run(cfg, train, test):
    """Train on (images, labels) arrays, evaluate on the test pair, write artifacts."""
    cfg.validate()
    set_reproducible(cfg.seed)

    run_dir = make_run_dir(cfg.out_dir)
    run_cfg = Config(**{**asdict(cfg), "out_dir": run_dir})
    log_path = os.path.join(run_dir, "log.jsonl")
    log_json(log_path, {"event": "config", **asdict(cfg)})

    fashion_plots.plot_samples(*train, path=os.path.join(run_dir, "samples.png"))
    plt.close("all")

    train, val = split_train_val(*train, val_fraction=cfg.val_fraction, seed=cfg.seed)
    if len(val[1]) == 0:
        val = test
    tr, va = make_loaders(train, val, cfg.batch_size)
    te = make_loader(*test, batch_size=cfg.batch_size * 2)

    model = FashionMLP(hidden=cfg.hidden, dropout=cfg.dropout).to(DEVICE)
    summary(model)
    opt = make_optimizer(cfg.optimizer, model.parameters(), cfg.lr)

    history = fit(model, tr, va, opt, cfg.epochs, log_path=log_path,
                  on_epoch_end=lambda epoch: save_ckpt(run_cfg, model, opt, epoch))
    save_ckpt(run_cfg, model, opt, cfg.epochs - 1, name="final.pt")

    test_loss, test_acc = evaluate(model, te)
    log_json(log_path, {"event": "test", "loss": test_loss, "accuracy": test_acc})
    print(f"test_loss={test_loss:.4f} test_acc={test_acc:.4f}")

    probs, labels = predict(model, te)
    preds = probs.argmax(1)
    report = classification_report(labels, preds, labels=list(range(len(CLASS_NAMES))),
                                   target_names=CLASS_NAMES, digits=4, zero_division=0)
    with open(os.path.join(run_dir, "report.txt"), "w") as f:
        f.write(report)
    print(report)

    fashion_plots.plot_history(history, path=os.path.join(run_dir, "history.png"))
    fashion_plots.plot_confusion_matrix(labels, preds, path=os.path.join(run_dir, "confusion.png"))
    fashion_plots.plot_predictions(test[0], labels, probs, path=os.path.join(run_dir, "predictions.png"))
    plt.close("all")

    return {"history": history, "test_loss": test_loss, "test_accuracy": test_acc, "run_dir": run_dir}


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Train a dense classifier on Fashion-MNIST.")
    for f in fields(Config):
        p.add_argument("--" + f.name.replace("_", "-"), dest=f.name, type=type(f.default), default=f.default)
    return Config(**vars(p.parse_args(argv)))


def main(argv=None):
    cfg = parse_args(argv)
    train, test = load_fashion_mnist(cfg.data_dir)
    run(cfg, train, test)


if __name__ == "__main__":
    main()
