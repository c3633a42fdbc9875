"""
Capabilities the assist service needs from an AI backend.

Any object with these methods can be plugged in; the survey and response
paths never depend on them.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class Embedder(Protocol):
    """Turns text into a fixed-size vector."""

    @property
    def dimension(self) -> int: ...

    async def embed(self, text: str) -> list[float]: ...


@runtime_checkable
class TextGenerator(Protocol):
    """Produces text for a prompt, grounded on context snippets."""

    async def generate(self, prompt: str, context: list[str]) -> str: ...


@runtime_checkable
class AssistClient(Embedder, TextGenerator, Protocol):
    """A backend providing both capabilities."""
