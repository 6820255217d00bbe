from dataclasses import dataclass
from typing import Any, Protocol, Sequence


@dataclass(frozen=True)
class GenerationRequest:
    system_instruction: str
    contents: Sequence[str]
    temperature: float = 0.0
    max_output_tokens: int = 800


class AIClient(Protocol):
    model: str

    def generate(self, request: GenerationRequest) -> Any:
        """Return the decoded response payload.

        Raises ``AIServiceError`` when the service answers with a non-2xx
        status or cannot be reached.
        """
        ...
