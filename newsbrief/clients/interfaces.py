"""Interfaces for external text-generation services."""

from abc import ABC, abstractmethod


class TextGenerator(ABC):
    """A generative model that turns a prompt into text."""

    @abstractmethod
    async def generate_text(self, prompt: str) -> str:
        """
        Generate text for a prompt.

        Args:
            prompt: Complete instruction prompt

        Returns:
            Model output, stripped

        Raises:
            Exception: If generation fails; callers treat this as "no output"
        """
        pass
