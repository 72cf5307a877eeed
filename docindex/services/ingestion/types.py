"""Value types passed between parsers and the scan orchestrator."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, TYPE_CHECKING

from docindex.core.cancellation import CancellationToken

if TYPE_CHECKING:
    from docindex.services.ai.service import AIService


@dataclass
class ParsedDocument:
    title: str
    content: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ParseContext:
    """Collaborators a parser may need besides the file path."""

    cancel_token: Optional[CancellationToken] = None
    ai_service: Optional["AIService"] = None


def word_count(text: str) -> int:
    """Whitespace-delimited token count."""
    return len(text.split())
