"""
Tests for the Reorder Classifier.

Covers:
  - Bootstrap dataset shape and labels
  - Fixed epoch budget and convergence signal
  - Score range and scoped input buffers
  - Disposal
  - Deterministic rule-based scorer
"""

import pytest

from ml.classifier import (
    BOOTSTRAP_EXAMPLES,
    FEATURE_NAMES,
    ModelDisposedError,
    RuleBasedScorer,
    TrainingExample,
    predict,
    train,
)

SCENARIO_A = (0, 50, 3)  # empty shelf, fast seller
SCENARIO_B = (100, 5, 2)  # overstocked, slow seller


@pytest.fixture(scope="module")
def trained_model():
    return train(BOOTSTRAP_EXAMPLES, epochs=250, random_state=42)


# ── Bootstrap Dataset ──────────────────────────────────────────────────


class TestBootstrapDataset:
    def test_size(self):
        assert 4 <= len(BOOTSTRAP_EXAMPLES) <= 6

    def test_feature_width(self):
        assert all(len(ex.features) == len(FEATURE_NAMES) == 3 for ex in BOOTSTRAP_EXAMPLES)

    def test_both_labels_present(self):
        assert {ex.label for ex in BOOTSTRAP_EXAMPLES} == {0, 1}

    def test_labels_follow_stock_vs_sales_rule(self):
        """Stock below weekly sales ⇒ reorder, above ⇒ safe."""
        for ex in BOOTSTRAP_EXAMPLES:
            stock, sales, _ = ex.features
            assert ex.label == (1 if stock < sales else 0)


# ── Training ───────────────────────────────────────────────────────────


class TestTrain:
    def test_runs_full_epoch_budget(self, trained_model):
        assert trained_model.epochs == 250
        assert len(trained_model.loss_curve) == 250

    def test_loss_decreases(self, trained_model):
        assert trained_model.converged
        assert trained_model.final_loss < trained_model.loss_curve[0]

    def test_scores_are_probabilities(self, trained_model):
        for vector in [SCENARIO_A, SCENARIO_B, (50, 50, 7), (0, 0, 0), (1000, 1, 30)]:
            score = predict(trained_model, vector)
            assert 0.0 <= score <= 1.0

    def test_learns_qualitative_boundary(self, trained_model):
        assert trained_model.predict(SCENARIO_A) > 0.5
        assert trained_model.predict(SCENARIO_B) < 0.5

    def test_seeded_training_is_reproducible(self):
        first = train(BOOTSTRAP_EXAMPLES, epochs=200, random_state=7)
        second = train(BOOTSTRAP_EXAMPLES, epochs=200, random_state=7)
        assert first.predict((30, 30, 5)) == pytest.approx(second.predict((30, 30, 5)))

    def test_rejects_single_label_dataset(self):
        examples = [TrainingExample((1, 10, 2), 1), TrainingExample((2, 20, 3), 1)]
        with pytest.raises(ValueError, match="both labels"):
            train(examples, epochs=10)

    def test_rejects_zero_epochs(self):
        with pytest.raises(ValueError):
            train(BOOTSTRAP_EXAMPLES, epochs=0)

    def test_non_convergence_is_not_raised(self):
        """A one-epoch run cannot report convergence but still returns a model."""
        model = train(BOOTSTRAP_EXAMPLES, epochs=1, random_state=0)
        assert model.converged is False
        assert 0.0 <= model.predict(SCENARIO_A) <= 1.0


# ── Buffers & Disposal ─────────────────────────────────────────────────


class TestScopedBuffers:
    def test_buffers_released_after_predict(self, trained_model):
        for _ in range(5):
            trained_model.predict(SCENARIO_A)
        assert trained_model.live_buffers == 0

    def test_buffers_released_on_error(self, trained_model):
        with pytest.raises(ValueError, match="expected 3 features"):
            trained_model.predict((1, 2))
        assert trained_model.live_buffers == 0

    def test_buffer_counted_only_while_scoring(self, monkeypatch):
        model = train(BOOTSTRAP_EXAMPLES, epochs=5, random_state=1)
        seen = []

        def failing_proba(buffer):
            seen.append((model.live_buffers, buffer.shape))
            raise RuntimeError("estimator failure")

        monkeypatch.setattr(model._estimator, "predict_proba", failing_proba)
        with pytest.raises(RuntimeError, match="estimator failure"):
            model.predict(SCENARIO_A)
        assert seen == [(1, (1, 3))]
        assert model.live_buffers == 0

    def test_predict_after_dispose_raises(self):
        model = train(BOOTSTRAP_EXAMPLES, epochs=5, random_state=1)
        model.dispose()
        assert model.disposed
        with pytest.raises(ModelDisposedError):
            model.predict(SCENARIO_A)
        model.dispose()  # idempotent


# ── Rule-Based Scorer ──────────────────────────────────────────────────


class TestRuleBasedScorer:
    def test_scenarios(self):
        scorer = RuleBasedScorer()
        assert scorer.predict(SCENARIO_A) > 0.5
        assert scorer.predict(SCENARIO_B) < 0.5

    def test_balanced_stock_is_threshold(self):
        assert RuleBasedScorer().predict((20, 20, 9)) == pytest.approx(0.5)

    def test_monotone_in_stock_and_sales(self):
        scorer = RuleBasedScorer()
        assert scorer.predict((10, 30, 3)) > scorer.predict((20, 30, 3))
        assert scorer.predict((10, 40, 3)) > scorer.predict((10, 30, 3))

    def test_invalid_scale(self):
        with pytest.raises(ValueError):
            RuleBasedScorer(scale=0)
