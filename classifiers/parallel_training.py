"""
parallel_training.py

Parallel evaluation of a trained classifier over a labeled test set.

Each worker classifies a contiguous chunk of queries into its own partial
confusion matrix; partials are merged in chunk order once every worker is
done, so no tally is shared between threads.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Iterable, List, Sequence, Tuple

from classifiers.training_harness import Classifier, ConfusionMatrix


# -----------------------------
# Chunking
# -----------------------------

def split_chunks(items: Sequence[Any], num_chunks: int) -> List[Sequence[Any]]:
    """
    Split items into at most ``num_chunks`` contiguous, near-equal chunks.

    Args:
        items: Sequence to split
        num_chunks: Desired number of chunks

    Returns:
        List of non-empty chunks preserving the original order
    """
    num_chunks = max(1, min(num_chunks, len(items)))
    size, extra = divmod(len(items), num_chunks)
    chunks = []
    start = 0
    for i in range(num_chunks):
        end = start + size + (1 if i < extra else 0)
        if end > start:
            chunks.append(items[start:end])
        start = end
    return chunks


# -----------------------------
# Parallel evaluation
# -----------------------------

def evaluate_parallel(classifier: Classifier,
                      queries: Iterable[Tuple[int, Any]],
                      max_workers: int) -> ConfusionMatrix:
    """
    Classify labeled queries across worker threads.

    Args:
        classifier: Trained classifier; only read during evaluation
        queries: ``(true_label, example)`` pairs
        max_workers: Maximum number of worker threads

    Returns:
        ConfusionMatrix equal to what a sequential ``test`` would produce
    """
    queries = list(queries)
    chunks = split_chunks(queries, max_workers)

    def classify_chunk(chunk):
        partial = ConfusionMatrix()
        for label, query in chunk:
            partial.record(label, classifier.classify(query))
        return partial

    partials: List[ConfusionMatrix] = [ConfusionMatrix() for _ in chunks]
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_index = {
            executor.submit(classify_chunk, chunk): index
            for index, chunk in enumerate(chunks)
        }

        for future in as_completed(future_to_index):
            index = future_to_index[future]
            try:
                partials[index] = future.result()
            except Exception as exc:
                print(f"Query chunk {index} generated an exception: {exc}")
                raise

    result = ConfusionMatrix()
    for partial in partials:
        result.merge(partial)
    return result
