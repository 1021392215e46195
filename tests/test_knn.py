"""
Tests for the KNN classifier, the confusion matrix and parallel evaluation
"""

import numpy as np
import pytest

from classifiers.KNN import KNNClassifier
from classifiers.histogram import Histogram
from classifiers.parallel_training import evaluate_parallel, split_chunks
from classifiers.training_harness import ConfusionMatrix
from vector_extraction.bits import BitSequence, real_distance


def equality_distance(a, b):
    return 0.0 if a == b else 1.0


def absolute_distance(a, b):
    return abs(a - b)


class TestKNNClassifier:
    def test_exact_match_k1(self):
        model = KNNClassifier(1, equality_distance)
        model.train([(4, "four"), (7, "seven"), (9, "nine")])
        assert model.classify("seven") == 7
        assert model.classify("nine") == 9

    def test_all_distances_tied(self):
        labels = [3, 1, 3, 1, 2]
        model = KNNClassifier(len(labels), lambda a, b: 0.0)
        model.train([(label, i) for i, label in enumerate(labels)])
        assert model.classify(100) == Histogram(labels).mode()
        assert model.classify(100) == 3

    def test_vote_tie_goes_to_nearer(self):
        model = KNNClassifier(2, absolute_distance)
        model.train([(7, 2.0), (5, 0.0)])
        assert model.classify(0.5) == 5
        assert model.classify(1.8) == 7

    def test_majority_vote(self):
        model = KNNClassifier(3, absolute_distance)
        model.train([(0, 0.0), (0, 1.0), (1, 2.0), (1, 50.0), (1, 51.0)])
        assert model.classify(0.4) == 0
        assert model.classify(49.0) == 1

    def test_bit_sequences(self):
        model = KNNClassifier(1, real_distance)
        model.train([
            (0, BitSequence.from_bools([True, False, True, False])),
            (1, BitSequence.from_bools([False, True, False, True])),
        ])
        assert model.classify(BitSequence.from_bools([True, False, True, False])) == 0
        assert model.classify(BitSequence.from_bools([False, True, False, False])) == 1

    def test_train_accumulates(self):
        model = KNNClassifier(1, absolute_distance)
        model.train([(0, 0.0)])
        model.train([(1, 10.0)])
        assert len(model) == 2
        assert model.classify(9.0) == 1

    def test_k_exceeds_examples(self):
        model = KNNClassifier(3, absolute_distance)
        model.train([(0, 0.0), (1, 1.0)])
        with pytest.raises(ValueError):
            model.classify(0.0)

    def test_invalid_k(self):
        with pytest.raises(ValueError):
            KNNClassifier(0, absolute_distance)

    def test_test_tallies_by_true_label(self):
        model = KNNClassifier(1, absolute_distance)
        model.train([(0, 0.0), (1, 10.0)])
        outcome = model.test([(0, 1.0), (1, 9.0), (1, 2.0), (0, 0.0)])
        assert outcome.correct(0) == 2
        assert outcome.correct(1) == 1
        assert outcome.incorrect(1) == 1
        assert outcome.incorrect(0) == 0
        assert outcome.error_rate() == pytest.approx(0.25)

    def test_parallel_matches_sequential(self):
        rng = np.random.RandomState(0)
        model = KNNClassifier(3, absolute_distance)
        model.train([(int(x > 0.5), float(x)) for x in rng.rand(40)])
        queries = [(int(x > 0.5), float(x)) for x in rng.rand(25)]

        sequential = model.test(queries)
        parallel = model.test(queries, max_workers=4)
        assert parallel.outcomes == sequential.outcomes
        assert parallel.error_rate() == sequential.error_rate()
        assert evaluate_parallel(model, queries, 3).outcomes == sequential.outcomes


class TestConfusionMatrix:
    def test_record(self):
        cm = ConfusionMatrix()
        cm.record(1, 1)
        cm.record(1, 2)
        cm.record(2, 2)
        assert cm.labels() == [1, 2]
        assert cm.total() == 3
        assert cm.correct(1) == 1
        assert cm.incorrect(1) == 1
        assert cm.incorrect(2) == 0
        assert cm.error_rate() == pytest.approx(1 / 3)

    def test_empty_error_rate(self):
        with pytest.raises(ValueError):
            ConfusionMatrix().error_rate()

    def test_merge(self):
        a = ConfusionMatrix()
        a.record(0, 0)
        b = ConfusionMatrix()
        b.record(0, 1)
        b.record(1, 1)
        a.merge(b)
        assert a.total() == 3
        assert a.outcomes == [(0, 0), (0, 1), (1, 1)]
        assert a.incorrect(0) == 1

    def test_matrix(self):
        cm = ConfusionMatrix()
        for actual, predicted in [(0, 0), (0, 1), (1, 1), (1, 1), (2, 0)]:
            cm.record(actual, predicted)
        table = cm.matrix()
        assert table.shape == (3, 3)
        assert table.tolist() == [[1, 1, 0], [0, 2, 0], [1, 0, 0]]
        assert isinstance(cm.report(), str)

    def test_str(self):
        cm = ConfusionMatrix()
        cm.record(3, 3)
        cm.record(3, 4)
        assert str(cm) == "3: 1 correct, 1 incorrect (50.00% error)\n"


class TestSplitChunks:
    def test_even_split(self):
        assert split_chunks(list(range(6)), 3) == [[0, 1], [2, 3], [4, 5]]

    def test_uneven_split(self):
        assert split_chunks(list(range(5)), 2) == [[0, 1, 2], [3, 4]]

    def test_more_chunks_than_items(self):
        assert split_chunks([1, 2], 8) == [[1], [2]]

    def test_empty(self):
        assert split_chunks([], 4) == []
