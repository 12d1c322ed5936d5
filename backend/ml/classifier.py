"""
Reorder Classifier — small feed-forward binary classifier.

Architecture (fixed):
  3 inputs (stock, avg weekly sales, lead time) → Dense(8, ReLU) → Dense(1, sigmoid)

Trained once per dashboard session on the embedded bootstrap dataset with
binary cross-entropy + Adam, shuffling every epoch, for a fixed epoch
budget. Inputs are raw magnitudes; no scaling is applied.

Initialization is stochastic unless a random_state is passed, so scores
for borderline inputs can differ between sessions. Only the qualitative
boundary (low stock + high sales ⇒ reorder) is expected to be stable.

Usage:
    from ml.classifier import BOOTSTRAP_EXAMPLES, train, predict
    model = train(BOOTSTRAP_EXAMPLES, epochs=200)
    score = predict(model, (0, 50, 3))
"""

import math
import warnings
from collections.abc import Sequence
from contextlib import contextmanager
from typing import NamedTuple, Protocol

import numpy as np
import structlog
from sklearn.exceptions import ConvergenceWarning
from sklearn.neural_network import MLPClassifier

logger = structlog.get_logger()

FEATURE_NAMES = ("current_inventory", "avg_sales", "lead_time")
HIDDEN_UNITS = 8
DEFAULT_EPOCHS = 200
DEFAULT_LEARNING_RATE = 0.01

FeatureVector = tuple[int, int, int]


class TrainingExample(NamedTuple):
    features: FeatureVector
    label: int  # 1 = reorder, 0 = safe


# [stock, sales/week, lead time days] -> 1 (reorder) / 0 (safe)
BOOTSTRAP_EXAMPLES: list[TrainingExample] = [
    TrainingExample((20, 50, 3), 1),  # low stock + high sales
    TrainingExample((5, 30, 5), 1),  # critical stock
    TrainingExample((8, 60, 2), 1),  # low stock
    TrainingExample((0, 40, 7), 1),  # empty shelf
    TrainingExample((50, 10, 2), 0),  # high stock + low sales
    TrainingExample((90, 15, 4), 0),  # well covered
]


class ModelDisposedError(RuntimeError):
    """Raised when predicting with a classifier whose buffers were released."""


class Scorer(Protocol):
    """Anything that maps a feature vector to a reorder probability."""

    def predict(self, features: Sequence[float]) -> float: ...


class ClassifierModel:
    """Trained classifier plus its convergence signal.

    Parameters are only written by ``train``; afterwards the model is
    read-only. Each prediction builds its input array inside
    ``_input_buffer``, which counts it in ``live_buffers`` for the
    duration of the call. The count is back to zero once a call returns
    or raises; the array itself is left to the garbage collector.
    """

    def __init__(self, estimator: MLPClassifier, loss_curve: list[float]):
        self._estimator: MLPClassifier | None = estimator
        self.loss_curve = list(loss_curve)
        self.live_buffers = 0

    @property
    def epochs(self) -> int:
        return len(self.loss_curve)

    @property
    def final_loss(self) -> float:
        return self.loss_curve[-1] if self.loss_curve else math.nan

    @property
    def converged(self) -> bool:
        """True when training loss ended below where it started."""
        if len(self.loss_curve) < 2:
            return False
        return self.loss_curve[-1] < self.loss_curve[0]

    @property
    def disposed(self) -> bool:
        return self._estimator is None

    @contextmanager
    def _input_buffer(self, features: Sequence[float]):
        if len(features) != len(FEATURE_NAMES):
            raise ValueError(f"expected {len(FEATURE_NAMES)} features, got {len(features)}")
        buffer = np.asarray([features], dtype=np.float64)
        self.live_buffers += 1
        try:
            yield buffer
        finally:
            self.live_buffers -= 1

    def predict(self, features: Sequence[float]) -> float:
        """Probability in [0, 1] that the product needs reordering."""
        if self._estimator is None:
            raise ModelDisposedError("classifier has been disposed")
        with self._input_buffer(features) as buffer:
            proba = self._estimator.predict_proba(buffer)
            score = float(proba[0, list(self._estimator.classes_).index(1)])
        return min(max(score, 0.0), 1.0)

    def dispose(self) -> None:
        """Release the estimator's weight arrays. Safe to call twice."""
        self._estimator = None


class RuleBasedScorer:
    """Deterministic stand-in for the trained classifier.

    Logistic of (weekly sales - stock) / scale: monotone in both inputs,
    so it draws the same qualitative boundary the classifier learns.
    Lead time is ignored.
    """

    def __init__(self, scale: float = 10.0):
        if scale <= 0:
            raise ValueError("scale must be positive")
        self.scale = scale

    def predict(self, features: Sequence[float]) -> float:
        stock, sales, _lead_time = features
        z = (float(sales) - float(stock)) / self.scale
        return 1.0 / (1.0 + math.exp(-z))


def train(
    examples: Sequence[TrainingExample] = BOOTSTRAP_EXAMPLES,
    epochs: int = DEFAULT_EPOCHS,
    learning_rate: float = DEFAULT_LEARNING_RATE,
    random_state: int | None = None,
) -> ClassifierModel:
    """
    Fit the 3 → 8 → 1 classifier for exactly ``epochs`` passes.

    Early stopping is disabled so the full epoch budget always runs.
    Non-convergence is reported through ``ClassifierModel.converged`` and
    a warning log, never raised.
    """
    if epochs < 1:
        raise ValueError("epochs must be >= 1")
    labels = {ex.label for ex in examples}
    if labels != {0, 1}:
        raise ValueError("training examples must contain both labels 0 and 1")

    X = np.array([ex.features for ex in examples], dtype=np.float64)
    y = np.array([ex.label for ex in examples], dtype=np.int64)

    estimator = MLPClassifier(
        hidden_layer_sizes=(HIDDEN_UNITS,),
        activation="relu",
        solver="adam",
        alpha=0.0,
        learning_rate_init=learning_rate,
        max_iter=epochs,
        shuffle=True,
        tol=0.0,
        n_iter_no_change=epochs,
        random_state=random_state,
    )
    with warnings.catch_warnings():
        # Hitting max_iter is the expected outcome of a fixed budget
        warnings.simplefilter("ignore", category=ConvergenceWarning)
        estimator.fit(X, y)

    model = ClassifierModel(estimator, loss_curve=estimator.loss_curve_)
    logger.info(
        "classifier.trained",
        examples=len(examples),
        epochs=model.epochs,
        initial_loss=round(model.loss_curve[0], 4),
        final_loss=round(model.final_loss, 4),
    )
    if not model.converged:
        logger.warning("classifier.not_converged", final_loss=model.final_loss)
    return model


def predict(model: Scorer, features: Sequence[float]) -> float:
    """Score one feature vector with any scorer."""
    return model.predict(features)
