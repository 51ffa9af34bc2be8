"""
Unit Tests: Network
===================

The key check: a single SGD step must move every weight by exactly the
gradient a finite-difference estimate of the loss gives. If that holds for
hidden and output layers, backpropagation is correct.

Also covered: structure invariants, the training loop, cooperative stop,
accuracy, and concurrent predict() while a background thread trains.

Run with: pytest tests/test_network.py -v
"""

import threading

import numpy as np
import pytest

from nnvis.activations import ActivationType
from nnvis.config import LayerConfig, NetworkConfig, OptimizerType, TrainingConfig
from nnvis.datasets import make_moons, xor
from nnvis.initializers import InitializationType
from nnvis.layer import Layer
from nnvis.losses import LossType, get_loss
from nnvis.network import Network, TrainingHistory


# =============================================================================
# Test Configuration
# =============================================================================

TOLERANCE = 1e-6


def assert_close(actual: float, expected: float, tol: float = TOLERANCE) -> None:
    """Assert two values are approximately equal."""
    diff = abs(actual - expected)
    assert diff < tol, f"Values differ: {actual} vs {expected} (diff={diff})"


def build(sizes, activations, seed=0, loss=LossType.MSE, learning_rate=0.1, dropout=None):
    """Build a network from parallel lists of sizes and activations."""
    dropout = dropout or [0.0] * len(sizes)
    config = NetworkConfig(
        layers=[
            LayerConfig(size, act, dropout_rate=rate)
            for size, act, rate in zip(sizes, activations, dropout)
        ],
        loss=loss,
        training=TrainingConfig(learning_rate=learning_rate, seed=seed),
        name='test',
    )
    return Network.from_config(config)


def xor_network(seed=1):
    return build(
        [2, 4, 1],
        [ActivationType.NONE, ActivationType.TANH, ActivationType.SIGMOID],
        seed=seed,
        learning_rate=0.5
    )


def clone(network: Network) -> Network:
    copy = Network()
    assert copy.from_dict(network.to_dict())
    return copy


def weights_of(network: Network):
    return [layer.weight_matrix for layer in network.layers]


# =============================================================================
# Structure
# =============================================================================

class TestStructure:
    """Adding, removing and re-initializing layers."""

    def test_weight_lengths_match_previous_layer(self) -> None:
        """Test every unit's fan-in equals the previous layer size."""
        net = build([3, 5, 4, 2], [ActivationType.NONE] + [ActivationType.RELU] * 3)
        assert net.layer_sizes == [3, 5, 4, 2]
        assert net.layers[0].input_size == 0
        for prev, layer in zip(net.layers, net.layers[1:]):
            assert all(u.input_count == prev.size for u in layer.units)

    def test_remove_middle_layer_keeps_invariant(self) -> None:
        """Test removing a hidden layer re-derives the rest."""
        net = build([3, 5, 4, 2], [ActivationType.NONE] + [ActivationType.RELU] * 3)
        assert net.remove_layer(1)
        assert net.layer_sizes == [3, 4, 2]
        assert net.layers[1].input_size == 3
        assert net.layers[2].input_size == 4

    def test_remove_input_layer(self) -> None:
        """Test removing the input layer promotes the next one."""
        net = build([3, 5, 2], [ActivationType.NONE, ActivationType.RELU, ActivationType.RELU])
        assert net.remove_layer(0)
        assert net.layers[0].input_size == 0
        assert net.layers[1].input_size == 5

    def test_remove_out_of_range(self, caplog) -> None:
        """Test out-of-range removal is logged and ignored."""
        net = build([2, 1], [ActivationType.NONE, ActivationType.SIGMOID])
        assert not net.remove_layer(5)
        assert net.layer_count == 2
        assert "Attempted to remove layer 5" in caplog.text

    def test_add_invalid_layer_is_rejected(self, caplog) -> None:
        """Test an invalid LayerConfig is logged and ignored."""
        net = Network()
        assert not net.add_layer(LayerConfig(0))
        assert net.layer_count == 0
        assert "Cannot add layer" in caplog.text

    def test_add_ready_made_layer(self) -> None:
        """Test adding Layer objects with an explicit scheme."""
        net = Network(seed=0)
        net.add_layer(Layer(2, ActivationType.NONE))
        net.add_layer(Layer(3, ActivationType.TANH), InitializationType.ZERO)
        assert net.layers[1].input_size == 2
        np.testing.assert_allclose(net.layers[1].weight_matrix, np.zeros((3, 2)))
        assert net.layers[1].rng is net.rng

    def test_clear_layers(self) -> None:
        """Test clear_layers() empties the network."""
        net = xor_network()
        net.clear_layers()
        assert net.layer_count == 0

    def test_initialize_weights_rederives_everything(self) -> None:
        """Test re-initializing every layer."""
        net = xor_network()
        net.initialize_weights(InitializationType.ONE)
        np.testing.assert_allclose(net.layers[1].weight_matrix, np.ones((4, 2)))
        np.testing.assert_allclose(net.layers[2].biases, [1.0])

    def test_reset_keeps_weights(self) -> None:
        """Test reset() clears activations only."""
        net = xor_network()
        before = weights_of(net)
        net.predict([1.0, 0.0])
        net.reset()
        assert np.all(net.get_activations(2) == 0.0)
        for a, b in zip(before, weights_of(net)):
            np.testing.assert_array_equal(a, b)

    def test_visualizer_accessors(self) -> None:
        """Test the per-layer accessors a renderer reads."""
        net = xor_network()
        net.predict([1.0, 1.0])
        assert net.get_activations(0).tolist() == [1.0, 1.0]
        assert net.get_weight_matrix(1).shape == (4, 2)
        assert net.get_biases(2).shape == (1,)
        assert net.get_activations(7).size == 0

    def test_non_sgd_optimizer_is_stored_with_warning(self, caplog) -> None:
        """Test non-SGD optimizer tags are stored with a warning."""
        net = Network()
        net.optimizer_type = OptimizerType.ADAM
        assert net.optimizer_type == OptimizerType.ADAM
        assert "plain SGD" in caplog.text


# =============================================================================
# Forward
# =============================================================================

class TestForward:
    """Forward passes and inference."""

    def test_output_shape(self) -> None:
        """Test output length equals the last layer size."""
        net = build([2, 3, 4], [ActivationType.NONE, ActivationType.RELU, ActivationType.SOFTMAX])
        out = net.predict([0.5, -0.5])
        assert out.shape == (4,)
        assert_close(float(out.sum()), 1.0)

    def test_empty_network(self, caplog) -> None:
        """Test forward on an empty network."""
        assert Network().forward([1.0]).size == 0
        assert "no layers" in caplog.text

    def test_wrong_input_size(self, caplog) -> None:
        """Test forward with the wrong input length."""
        assert xor_network().predict([1.0, 2.0, 3.0]).size == 0
        assert "doesn't match first layer size" in caplog.text

    def test_predict_is_deterministic_and_read_only(self) -> None:
        """Test predict() is idempotent and leaves weights alone."""
        net = xor_network()
        before = weights_of(net)
        a = net.predict([0.3, 0.7])
        b = net.predict([0.3, 0.7])
        np.testing.assert_array_equal(a, b)
        for w0, w1 in zip(before, weights_of(net)):
            np.testing.assert_array_equal(w0, w1)

    def test_output_ranges(self) -> None:
        """Test sigmoid outputs stay in [0, 1] and ReLU activations are non-negative."""
        net = build(
            [3, 8, 2],
            [ActivationType.NONE, ActivationType.RELU, ActivationType.SIGMOID],
            seed=4
        )
        rng = np.random.default_rng(0)
        for x in rng.normal(0.0, 10.0, size=(50, 3)):
            out = net.predict(x)
            assert np.all((out >= 0.0) & (out <= 1.0))
            assert np.all(net.get_activations(1) >= 0.0)

    def test_dropout_only_while_training(self) -> None:
        """Test dropout applies to training passes only."""
        net = build(
            [2, 100, 1],
            [ActivationType.NONE, ActivationType.TANH, ActivationType.SIGMOID],
            dropout=[0.0, 0.5, 0.0]
        )
        net.predict([0.4, 0.9])
        first = net.get_activations(1)
        net.predict([0.4, 0.9])
        np.testing.assert_array_equal(first, net.get_activations(1))

        net.forward([0.4, 0.9], training=True)
        hidden = net.get_activations(1)
        assert np.count_nonzero(hidden == 0.0) > 0
        np.testing.assert_allclose(hidden[hidden != 0.0], 2 * first[hidden != 0.0])


# =============================================================================
# Backpropagation vs Finite Differences
# =============================================================================

def _sample_loss(net, loss, x, y):
    return loss(net.predict(x), y)


def _check_gradients(net, x, y):
    """One SGD step with lr=1 must move each parameter by exactly dL/dp."""
    loss = get_loss(net.loss_type)
    probe = clone(net)
    stepped = clone(net)
    stepped.learning_rate = 1.0
    stepped.train_sample(x, y)

    h = 1e-5
    for li in range(1, probe.layer_count):
        layer = probe.layers[li]
        for unit, moved in zip(layer.units, stepped.layers[li].units):
            for k in range(unit.input_count):
                w = unit.get_input_weight(k)
                unit.set_input_weight(k, w + h)
                up = _sample_loss(probe, loss, x, y)
                unit.set_input_weight(k, w - h)
                down = _sample_loss(probe, loss, x, y)
                unit.set_input_weight(k, w)

                numeric = (up - down) / (2 * h)
                assert_close(w - moved.get_input_weight(k), numeric)

            b = unit.bias
            unit.bias = b + h
            up = _sample_loss(probe, loss, x, y)
            unit.bias = b - h
            down = _sample_loss(probe, loss, x, y)
            unit.bias = b
            assert_close(b - moved.bias, (up - down) / (2 * h))


class TestGradients:
    """Backpropagation checked against finite differences."""

    def test_tanh_sigmoid_mse(self) -> None:
        """Test gradients for tanh hidden, sigmoid output and MSE."""
        net = build(
            [2, 3, 1],
            [ActivationType.NONE, ActivationType.TANH, ActivationType.SIGMOID]
        )
        _check_gradients(net, [0.5, -1.2], [1.0])

    def test_deep_mixed_activations(self) -> None:
        """Test gradients through ELU, GELU and Swish layers."""
        net = build(
            [3, 4, 3, 2],
            [ActivationType.NONE, ActivationType.ELU, ActivationType.GELU, ActivationType.SWISH]
        )
        _check_gradients(net, [0.2, -0.7, 1.1], [0.3, -0.4])

    def test_softmax_cross_entropy(self) -> None:
        """Test gradients for softmax output with cross-entropy."""
        net = build(
            [2, 4, 3],
            [ActivationType.NONE, ActivationType.TANH, ActivationType.SOFTMAX],
            loss=LossType.CROSS_ENTROPY
        )
        _check_gradients(net, [0.9, -0.3], [0.0, 1.0, 0.0])

    def test_sigmoid_binary_cross_entropy(self) -> None:
        """Test gradients for sigmoid output with binary cross-entropy."""
        net = build(
            [2, 3, 1],
            [ActivationType.NONE, ActivationType.LEAKY_RELU, ActivationType.SIGMOID],
            loss=LossType.BINARY_CROSS_ENTROPY
        )
        _check_gradients(net, [1.5, 0.5], [0.0])

    def test_backward_returns_sample_loss(self) -> None:
        """Test backward() returns the sample loss."""
        net = xor_network()
        out = net.forward([1.0, 0.0], training=True)
        expected = get_loss(LossType.MSE)(out, [1.0])
        assert_close(net.backward([1.0], out), expected)

    def test_backward_size_mismatch(self, caplog) -> None:
        """Test mismatched targets are logged and change nothing."""
        net = xor_network()
        before = weights_of(net)
        assert net.backward([1.0, 0.0], [0.5]) == 0.0
        np.testing.assert_array_equal(before[2], net.layers[2].weight_matrix)
        assert "Backward pass failed" in caplog.text


# =============================================================================
# Training
# =============================================================================

class TestTraining:
    """The epoch loop, history and cooperative stop."""

    def test_xor_loss_decreases(self) -> None:
        """Test training on XOR lowers the loss."""
        net = xor_network()
        X, y = xor()
        history = net.train(X, y, epochs=1000, batch_size=4)

        assert isinstance(history, TrainingHistory)
        assert history.epochs == 1000
        assert np.mean(history.train_loss[-20:]) < np.mean(history.train_loss[:20])

    def test_relu_xor_converges(self) -> None:
        """Test a 2-4-1 ReLU/sigmoid network at lr 0.1 fits XOR in 1000 epochs."""
        net = build(
            [2, 4, 1],
            [ActivationType.NONE, ActivationType.RELU, ActivationType.SIGMOID],
            seed=1,
            learning_rate=0.1
        )
        X, y = xor()
        history = net.train(X, y, epochs=1000, batch_size=4)
        assert history.epochs == 1000
        assert np.mean(history.train_loss[-20:]) < np.mean(history.train_loss[:20])
        assert np.mean(history.train_loss[-20:]) < 0.05

    def test_config_supplies_training_defaults(self) -> None:
        """Test epochs and batch size default from the training config."""
        config = NetworkConfig(
            layers=[LayerConfig(2, ActivationType.NONE), LayerConfig(1, ActivationType.SIGMOID)],
            training=TrainingConfig(learning_rate=0.1, epochs=7, batch_size=2, seed=3),
        )
        net = Network.from_config(config)
        X, y = xor()
        assert net.training_config is config.training
        assert net.train(X, y).epochs == 7
        assert net.train(X, y, epochs=2).epochs == 2

    def test_shuffle_off_keeps_sample_order(self) -> None:
        """Test shuffle=False trains on the samples in their given order."""
        config = NetworkConfig(
            layers=[
                LayerConfig(2, ActivationType.NONE),
                LayerConfig(3, ActivationType.TANH),
                LayerConfig(1, ActivationType.SIGMOID),
            ],
            training=TrainingConfig(learning_rate=0.5, shuffle=False, seed=3),
        )
        net = Network.from_config(config)
        expected = clone(net)
        X, y = xor()

        net.train(X, y, epochs=1, batch_size=1)
        for x, t in zip(X, y):
            expected.train_batch([x], [t])

        for w0, w1 in zip(weights_of(expected), weights_of(net)):
            np.testing.assert_array_equal(w0, w1)

    def test_shuffle_changes_the_run(self) -> None:
        """Test shuffled and unshuffled runs from the same start differ."""
        X, y = xor()
        shuffled, ordered = xor_network(seed=3), xor_network(seed=3)
        hs = shuffled.train(X, y, epochs=5, batch_size=1, shuffle=True)
        ho = ordered.train(X, y, epochs=5, batch_size=1, shuffle=False)
        assert hs.train_loss != ho.train_loss

    def test_invalid_training_config_is_ignored(self, caplog) -> None:
        """Test an out-of-range training config is logged and skipped."""
        config = NetworkConfig(
            layers=[LayerConfig(2, ActivationType.NONE), LayerConfig(1, ActivationType.SIGMOID)],
            training=TrainingConfig(learning_rate=0.0, epochs=9),
        )
        net = Network.from_config(config)
        assert "Ignoring training settings" in caplog.text
        assert net.learning_rate == 0.001
        assert net.training_config == TrainingConfig()
        assert net.layer_sizes == [2, 1]

    def test_fit_holds_out_validation_split(self) -> None:
        """Test fit() evaluates the held-out fraction every epoch."""
        config = NetworkConfig(
            layers=[
                LayerConfig(2, ActivationType.NONE),
                LayerConfig(4, ActivationType.TANH),
                LayerConfig(1, ActivationType.SIGMOID),
            ],
            training=TrainingConfig(
                learning_rate=0.1, epochs=3, batch_size=8, validation_split=0.25, seed=0
            ),
        )
        net = Network.from_config(config)
        X, y = make_moons(n_samples=40, seed=0)
        history = net.fit(X, y)
        assert history.epochs == 3
        assert len(history.val_loss) == len(history.val_accuracy) == 3

    def test_fit_without_validation_split(self) -> None:
        """Test fit() with no split trains on everything."""
        net = build(
            [2, 3, 1],
            [ActivationType.NONE, ActivationType.TANH, ActivationType.SIGMOID],
            seed=2
        )
        net.training_config = TrainingConfig(epochs=4, batch_size=2, validation_split=0.0)
        X, y = xor()
        history = net.fit(X, y)
        assert history.epochs == 4
        assert history.val_loss == []

    def test_history_and_progress(self) -> None:
        """Test history length and final progress."""
        net = xor_network()
        X, y = xor()
        history = net.train(X, y, epochs=5, batch_size=2, validation_inputs=X, validation_targets=y)
        assert len(history.train_loss) == len(history.train_accuracy) == 5
        assert len(history.val_loss) == len(history.val_accuracy) == 5
        assert net.training_progress == 1.0
        assert not net.is_training
        assert net.history is history

    def test_callback_sees_every_epoch(self) -> None:
        """Test the progress callback runs once per epoch."""
        net = xor_network()
        X, y = xor()
        seen = []
        net.train(X, y, epochs=3, progress_callback=lambda e, l, a: seen.append((e, l, a)))
        assert [e for e, _, _ in seen] == [0, 1, 2]
        assert all(0.0 <= a <= 1.0 for _, _, a in seen)

    def test_stop_training_ends_at_epoch_boundary(self) -> None:
        """Test stop_training() ends the run after the current epoch."""
        net = xor_network()
        X, y = xor()

        def stop_after_third(epoch, loss, accuracy):
            if epoch == 2:
                net.stop_training()

        history = net.train(X, y, epochs=50, progress_callback=stop_after_third)
        assert history.epochs == 3
        assert_close(net.training_progress, 3 / 50)
        assert not net.is_training

    def test_concurrent_train_is_rejected(self, caplog) -> None:
        """Test a second train() during training is rejected."""
        net = xor_network()
        X, y = xor()
        nested = []

        def try_again(epoch, loss, accuracy):
            if epoch == 0:
                nested.append(net.train(X, y, epochs=2))

        history = net.train(X, y, epochs=2, progress_callback=try_again)
        assert history.epochs == 2
        assert nested[0].epochs == 0
        assert "already training" in caplog.text

    @pytest.mark.parametrize("kwargs", [
        dict(inputs=[], targets=[], epochs=5, batch_size=2),
        dict(inputs=[[0.0, 1.0]], targets=[], epochs=5, batch_size=2),
        dict(inputs=[[0.0, 1.0]], targets=[[1.0]], epochs=0, batch_size=2),
        dict(inputs=[[0.0, 1.0]], targets=[[1.0]], epochs=5, batch_size=0),
    ])
    def test_unusable_arguments_give_empty_history(self, kwargs, caplog) -> None:
        """Test unusable arguments give an empty history."""
        net = xor_network()
        before = weights_of(net)
        history = net.train(**kwargs)
        assert history.epochs == 0
        assert "Cannot train" in caplog.text
        for w0, w1 in zip(before, weights_of(net)):
            np.testing.assert_array_equal(w0, w1)

    def test_untrainable_network(self) -> None:
        """Test a network without layers can't train."""
        assert Network().train([[1.0]], [[1.0]], epochs=3).epochs == 0

    def test_seeded_training_is_reproducible(self) -> None:
        """Test equal seeds give identical runs."""
        X, y = xor()
        a, b = xor_network(seed=11), xor_network(seed=11)
        ha = a.train(X, y, epochs=20, batch_size=2)
        hb = b.train(X, y, epochs=20, batch_size=2)
        assert ha.train_loss == hb.train_loss
        for w0, w1 in zip(weights_of(a), weights_of(b)):
            np.testing.assert_array_equal(w0, w1)

    def test_train_batch(self) -> None:
        """Test train_batch() averages and validates."""
        net = xor_network()
        X, y = xor()
        assert net.train_batch(X, y) > 0.0
        assert net.train_batch(X, y[:2]) == 0.0
        assert net.train_batch([], []) == 0.0

    def test_frozen_layer_survives_training(self) -> None:
        """Test a non-trainable layer keeps its weights."""
        net = xor_network()
        net.layers[1].trainable = False
        frozen = net.layers[1].weight_matrix
        X, y = xor()
        net.train(X, y, epochs=5)
        np.testing.assert_array_equal(frozen, net.layers[1].weight_matrix)


# =============================================================================
# Batching, Accuracy, Evaluation
# =============================================================================

class TestBatchesAndMetrics:
    """Batching, accuracy and evaluation."""

    def test_create_batches(self) -> None:
        """Test batches are contiguous and ordered."""
        inputs = [[float(i)] for i in range(10)]
        targets = [[float(-i)] for i in range(10)]
        batches = Network.create_batches(inputs, targets, 3)
        assert [len(b[0]) for b in batches] == [3, 3, 3, 1]
        assert [x[0] for b in batches for x in b[0]] == list(range(10))
        assert batches[2][1][0] == [-6.0]

    def test_create_batches_rejects_bad_size(self) -> None:
        """Test invalid batch arguments give no batches."""
        assert Network.create_batches([[1.0]], [[1.0]], 0) == []
        assert Network.create_batches([[1.0]], [], 2) == []

    def test_single_output_accuracy(self) -> None:
        """Test thresholded single-output accuracy."""
        outputs = [[0.7], [0.2], [0.6], [0.4]]
        targets = [[1.0], [1.0], [1.0], [0.0]]
        assert Network.compute_accuracy(outputs, targets) == 0.75

    def test_multi_output_accuracy(self) -> None:
        """Test argmax multi-output accuracy."""
        outputs = [[0.1, 0.8, 0.1], [0.6, 0.3, 0.1]]
        targets = [[0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]
        assert Network.compute_accuracy(outputs, targets) == 0.5

    def test_accuracy_edge_cases(self) -> None:
        """Test empty and mismatched accuracy inputs."""
        assert Network.compute_accuracy([], []) == 0.0
        assert Network.compute_accuracy([[1.0]], []) == 0.0

    def test_evaluate(self) -> None:
        """Test evaluate() averages the per-sample loss."""
        net = xor_network()
        X, y = xor()
        loss, accuracy = net.evaluate(X, y)
        expected = np.mean([get_loss(LossType.MSE)(net.predict(x), t) for x, t in zip(X, y)])
        assert_close(loss, expected)
        assert 0.0 <= accuracy <= 1.0

    def test_evaluate_mismatch(self) -> None:
        """Test evaluate() with mismatched data."""
        assert xor_network().evaluate([[0.0, 1.0]], []) == (0.0, 0.0)


# =============================================================================
# Threading
# =============================================================================

class TestThreading:
    """Background training with a foreground reader."""

    def test_train_async(self) -> None:
        """Test training on a background thread."""
        net = xor_network()
        X, y = xor()
        thread = net.train_async(X, y, 10, 4)
        assert isinstance(thread, threading.Thread)
        thread.join(timeout=30)
        assert not thread.is_alive()
        assert net.history.epochs == 10
        assert net.training_progress == 1.0

    def test_predict_while_training(self) -> None:
        """Test predict() and to_dict() interleave with training."""
        net = xor_network()
        X, y = xor()
        started = threading.Event()
        thread = net.train_async(
            X, y, 100000, 4, progress_callback=lambda e, l, a: started.set()
        )

        outputs = []
        while len(outputs) < 200 and thread.is_alive():
            outputs.append(net.predict([1.0, 0.0]))
            net.to_dict()
        # a stop issued before train() starts would be cleared by it
        assert started.wait(timeout=30)
        net.stop_training()
        thread.join(timeout=30)

        assert not thread.is_alive()
        assert not net.is_training
        assert net.history.epochs < 100000
        assert all(o.shape == (1,) and np.isfinite(o[0]) for o in outputs)

    def test_stop_from_another_thread(self) -> None:
        """Test stopping a background run from the caller's thread."""
        net = xor_network()
        X, y = xor()
        started = threading.Event()
        thread = net.train_async(
            X, y, 100000, 4, progress_callback=lambda e, l, a: started.set()
        )
        assert started.wait(timeout=30)
        net.stop_training()
        thread.join(timeout=30)
        assert not thread.is_alive()
        assert 0.0 < net.training_progress < 1.0
