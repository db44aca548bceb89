# Copyright 2024 Flyto
# Licensed under the Apache License, Version 2.0
"""Abstract text generation interface."""
import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class TextGenerationService(ABC):
    """A single-turn text generation backend (Anthropic, OpenAI, etc.).

    Implementations must raise ``ServiceError`` for every failure of the
    underlying call so that callers only need to handle one exception type.
    """

    name = "base"

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        system_prompt: str = "",
        max_tokens: int = 2000,
    ) -> str:
        """Return the generated text for ``prompt``.

        Parameters
        ----------
        prompt : str
            The user-turn instruction.
        system_prompt : str, optional
            System instruction; omitted from the request when empty.
        max_tokens : int
            Upper bound on the generated output length.
        """
