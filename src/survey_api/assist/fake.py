"""
Deterministic in-process assist backend for tests and local development.
"""

import hashlib
import math

DEFAULT_DIMENSION = 64


class FakeAssistClient:
    """Embedder and text generator that never leaves the process.

    Embeddings are bag-of-words vectors: every lowercased token is hashed
    into a bucket, so texts sharing words point in similar directions and
    identical texts always produce identical vectors.
    """

    def __init__(self, dimension: int = DEFAULT_DIMENSION) -> None:
        if dimension < 1:
            raise ValueError("dimension must be positive")
        self._dimension = dimension

    @property
    def dimension(self) -> int:
        return self._dimension

    async def embed(self, text: str) -> list[float]:
        vector = [0.0] * self._dimension
        for token in text.lower().split():
            digest = hashlib.sha256(token.encode("utf-8")).digest()
            bucket = int.from_bytes(digest[:4], "big") % self._dimension
            vector[bucket] += 1.0

        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0:
            return vector
        return [v / norm for v in vector]

    async def generate(self, prompt: str, context: list[str]) -> str:
        lines = [f"Suggestion for: {prompt}"]
        if context:
            lines.append("")
            lines.append("Based on your memos:")
            lines.extend(f"- Memo {i}: {snippet}" for i, snippet in enumerate(context, start=1))
        return "\n".join(lines)
