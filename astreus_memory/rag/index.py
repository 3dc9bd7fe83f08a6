"""Exact cosine-similarity vector index."""

import itertools
import threading
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..core.exceptions import ConfigurationError, DimensionMismatchError, ValidationError


def similarity_score(cosine: float) -> float:
    """Map raw cosine similarity in [-1, 1] onto the [0, 1] score scale."""
    return min(1.0, max(0.0, (cosine + 1.0) / 2.0))


class VectorIndex:
    """Brute-force nearest-neighbour index over unit-normalized vectors.

    Scores are ``(cosine + 1) / 2`` so every score lies in ``[0, 1]``.
    Results are ordered by descending score; equal scores keep first-insertion
    order. Each vector may carry a ``partition`` key (a session id, for
    example) so queries can be restricted before ranking.
    """

    def __init__(self, dimension: int):
        if not isinstance(dimension, int) or dimension < 1:
            raise ConfigurationError(f"Invalid index dimension: {dimension}", "embedding_dimension")
        self.dimension = dimension
        self._vectors: Dict[str, np.ndarray] = {}
        self._order: Dict[str, int] = {}
        self._partitions: Dict[str, Optional[str]] = {}
        self._sequence = itertools.count()
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._vectors)

    def __contains__(self, vector_id: str) -> bool:
        return vector_id in self._vectors

    def _normalize(self, vector_id: str, vector: Sequence[float]) -> np.ndarray:
        array = np.asarray(vector, dtype=np.float64)
        if array.ndim != 1 or array.shape[0] != self.dimension:
            actual = array.shape[0] if array.ndim == 1 else int(array.size)
            raise DimensionMismatchError(self.dimension, actual, vector_id)
        norm = float(np.linalg.norm(array))
        if norm == 0.0 or not np.isfinite(norm):
            raise ValidationError("Cannot index a zero or non-finite vector", "vector")
        return array / norm

    def upsert(self, vector_id: str, vector: Sequence[float], partition: Optional[str] = None) -> None:
        """Insert or replace the vector stored under ``vector_id``."""
        normalized = self._normalize(vector_id, vector)
        with self._lock:
            if vector_id not in self._order:
                self._order[vector_id] = next(self._sequence)
            self._vectors[vector_id] = normalized
            self._partitions[vector_id] = partition

    def remove(self, vector_id: str) -> bool:
        """Remove a vector. Returns True if it was present."""
        with self._lock:
            if vector_id not in self._vectors:
                return False
            del self._vectors[vector_id]
            del self._order[vector_id]
            del self._partitions[vector_id]
            return True

    def remove_many(self, vector_ids: Iterable[str]) -> int:
        with self._lock:
            return sum(1 for vector_id in list(vector_ids) if self.remove(vector_id))

    def remove_partition(self, partition: str) -> int:
        with self._lock:
            ids = [vid for vid, part in self._partitions.items() if part == partition]
            return self.remove_many(ids)

    def clear(self) -> None:
        with self._lock:
            self._vectors.clear()
            self._order.clear()
            self._partitions.clear()

    def query(
        self,
        vector: Sequence[float],
        limit: int = 5,
        threshold: float = 0.0,
        partition: Optional[str] = None,
    ) -> List[Tuple[str, float]]:
        """Return up to ``limit`` ``(id, score)`` pairs with ``score >= threshold``."""
        if limit < 1:
            return []
        query_vector = self._normalize("<query>", vector)

        # Snapshot under the lock, score outside it
        with self._lock:
            candidates = [
                (vid, self._order[vid], vec)
                for vid, vec in self._vectors.items()
                if partition is None or self._partitions[vid] == partition
            ]

        if not candidates:
            return []

        matrix = np.stack([vec for _, _, vec in candidates])
        cosines = matrix @ query_vector

        scored = []
        for (vid, order, _), cosine in zip(candidates, cosines):
            score = similarity_score(float(cosine))
            if score >= threshold:
                scored.append((score, order, vid))

        scored.sort(key=lambda item: (-item[0], item[1]))
        return [(vid, score) for score, _, vid in scored[:limit]]
