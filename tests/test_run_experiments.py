"""
Tests for configuration handling and the experiment harness
"""

import numpy as np
import pytest

import run_experiments
from conftest import write_idx_images, write_idx_labels
from experiment_config import DEFAULT_CONFIG, build_config
from vector_extraction.features.pixels import euclidean_distance, raw_pixels
from vector_extraction.permutation import make_permutation, write_permutation


class TestConfig:
    def test_defaults(self):
        cfg = build_config()
        assert cfg["k"] == 7
        assert cfg["kernel"]["kernel_size"] == 3
        assert cfg is not DEFAULT_CONFIG

    def test_nested_merge(self):
        cfg = build_config({"kernel": {"num_kernels": 4}, "k": 3})
        assert cfg["kernel"]["num_kernels"] == 4
        assert cfg["kernel"]["levels"] == DEFAULT_CONFIG["kernel"]["levels"]
        assert cfg["k"] == 3
        assert DEFAULT_CONFIG["kernel"]["num_kernels"] == 8

    def test_unknown_keys(self):
        with pytest.raises(ValueError):
            build_config({"neighbors": 3})
        with pytest.raises(ValueError):
            build_config({"kernel": {"size": 3}})

    def test_unknown_experiment(self):
        with pytest.raises(ValueError):
            build_config({"experiments": ["sift"]})

    def test_invalid_k(self):
        with pytest.raises(ValueError):
            build_config({"k": 0})


class TestCommandLine:
    def test_default_experiment(self):
        cfg = run_experiments.config_from_args(run_experiments.parse_args([]))
        assert cfg["experiments"] == ["baseline"]
        assert cfg["shrink"] is None

    def test_options(self):
        args = run_experiments.parse_args(["brief", "pyramid", "--k", "3", "--seed", "5", "--shrink"])
        cfg = run_experiments.config_from_args(args)
        assert cfg["experiments"] == ["brief", "pyramid"]
        assert cfg["k"] == 3
        assert cfg["random_state"] == 5
        assert cfg["shrink"] == 50

    def test_unknown_experiment(self):
        with pytest.raises(SystemExit):
            run_experiments.parse_args(["sift"])


class TestHarness:
    def test_timed_op(self, capsys):
        with run_experiments.timed_op("counting"):
            pass
        out = capsys.readouterr().out
        assert "Started counting..." in out
        assert "Finished counting after 0 seconds" in out

    def test_build_and_test_model(self, capsys):
        rng = np.random.RandomState(0)
        training = [(i % 2, rng.randint(0, 256, size=(4, 4)).astype(np.uint8)) for i in range(10)]
        testing = [(label, img.copy()) for label, img in training[:4]]
        cfg = build_config({"k": 1, "max_workers": 2})

        outcome = run_experiments.build_and_test_model(
            "Baseline", training, testing, raw_pixels, euclidean_distance, cfg
        )
        assert outcome.total() == 4
        assert outcome.error_rate() == 0.0
        assert "Error rate: 0.0" in capsys.readouterr().out

    def test_train_and_test(self, mnist_dir, tmp_path):
        perm_path = str(tmp_path / "permutation")
        write_permutation(perm_path, make_permutation(64, random_state=0))
        cfg = build_config({
            "base_path": str(mnist_dir),
            "k": 1,
            "random_state": 0,
            "max_workers": 2,
            "experiments": ["baseline", "pyramid", "brief", "patch", "kernel"],
            "brief": {"pairs": 128},
            "kernel": {"num_kernels": 2},
            "permutation_file": perm_path,
        })

        outcomes = run_experiments.train_and_test(cfg)
        assert set(outcomes) == {
            "baseline", "pyramid", "brief", "patch", "kernel",
            "baseline-permuted", "pyramid-permuted", "brief-permuted", "patch-permuted", "kernel-permuted",
        }
        for outcome in outcomes.values():
            assert outcome.total() == 7
            assert outcome.error_rate() == 0.0

    def test_shrink(self, mnist_dir):
        cfg = build_config({"base_path": str(mnist_dir), "k": 1, "shrink": 2})
        outcomes = run_experiments.train_and_test(cfg)
        assert outcomes["baseline"].total() == 4

    def test_main(self, mnist_dir):
        assert run_experiments.main(["baseline", "--k", "1", "--base-path", str(mnist_dir)]) == 0

    def test_empty_training_set(self, mnist_dir):
        write_idx_images(mnist_dir / "train-images-idx3-ubyte", np.zeros((0, 8, 8)))
        write_idx_labels(mnist_dir / "train-labels-idx1-ubyte", [])
        cfg = build_config({"base_path": str(mnist_dir), "k": 1, "shrink": 50})
        with pytest.raises(ValueError, match="0 training"):
            run_experiments.train_and_test(cfg)

    def test_large_shrink_keeps_first_image(self, mnist_dir):
        cfg = build_config({"base_path": str(mnist_dir), "k": 1, "shrink": 1000})
        outcomes = run_experiments.train_and_test(cfg)
        assert outcomes["baseline"].total() == 1
