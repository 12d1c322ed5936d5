"""
Inference Runner — apply the reorder classifier to a product catalog.

One Decision per product; the mapping is always rebuilt as a whole.
"""

from collections.abc import Sequence

import structlog

from inventory.records import Decision, DecisionLabel, ProductRecord
from ml.classifier import Scorer, predict

logger = structlog.get_logger()

REORDER_THRESHOLD = 0.5


def label_for(score: float) -> DecisionLabel:
    """Strictly above the threshold means reorder."""
    return DecisionLabel.REORDER if score > REORDER_THRESHOLD else DecisionLabel.SAFE


def classify(model: Scorer, products: Sequence[ProductRecord]) -> dict[int, Decision]:
    """Score every product and map its id to a Decision."""
    if not products:
        raise ValueError("classify() needs at least one product")

    decisions: dict[int, Decision] = {}
    for product in products:
        score = predict(model, product.features)
        decisions[product.id] = Decision(score=score, label=label_for(score))

    logger.info(
        "inference.completed",
        products=len(products),
        reorder=sum(1 for d in decisions.values() if d.needs_reorder),
    )
    return decisions
