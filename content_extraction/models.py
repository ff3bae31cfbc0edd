"""
Data types shared by the extraction pipeline stages
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote


class EnvelopeKind(Enum):
    """How a relay wraps the fetched page"""
    RAW_TEXT = "raw_text"
    JSON_WRAPPED = "json_wrapped"


@dataclass(frozen=True)
class RelayProvider:
    """
    A relay service that fetches a URL on our behalf.

    ``endpoint_template`` may reference ``{url}`` (target URL as-is) and
    ``{encoded_url}`` (percent-encoded target URL).
    """
    identifier: str
    endpoint_template: str
    envelope_kind: EnvelopeKind = EnvelopeKind.RAW_TEXT
    json_field: str = "contents"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RelayProvider":
        try:
            kind = EnvelopeKind(data.get('envelope_kind', EnvelopeKind.RAW_TEXT.value))
        except ValueError as e:
            raise ValueError(
                f"Unknown envelope_kind for relay {data.get('identifier')!r}: {data.get('envelope_kind')!r}"
            ) from e
        return cls(
            identifier=data['identifier'],
            endpoint_template=data['endpoint_template'],
            envelope_kind=kind,
            json_field=data.get('json_field', 'contents'),
        )

    def build_request_url(self, url: str) -> str:
        return self.endpoint_template.format(url=url, encoded_url=quote(url, safe=''))


class AttemptOutcome(Enum):
    SUCCESS = "success"
    TIMEOUT = "timeout"
    TRANSPORT_ERROR = "transport_error"
    BAD_STATUS = "bad_status"
    DECODE_ERROR = "decode_error"
    TOO_SHORT = "too_short"


@dataclass
class RetrievalAttempt:
    """One try against one relay provider; never persisted"""
    provider: RelayProvider
    started_at: float
    outcome: AttemptOutcome
    detail: str = ""
    elapsed_s: float = 0.0


@dataclass
class RetrievalResult:
    provider: RelayProvider
    markup: str
    attempts: List[RetrievalAttempt] = field(default_factory=list)


@dataclass
class ContentCandidate:
    """Text believed to be the article body, plus the node it came from"""
    source_node: Any
    text: str
    rule: str

    @property
    def length(self) -> int:
        return len(self.text)


@dataclass(frozen=True)
class ArticleMetadata:
    title: str
    author: str
    domain: str
    tags: Tuple[str, ...]
    word_count: int
    read_time_minutes: int
    published_at: Optional[str] = None


@dataclass
class ArticleRecord:
    """Normalized article handed to the article store"""
    title: str
    content: str
    excerpt: str
    author: str
    domain: str
    url: str
    read_time_minutes: int
    tags: List[str]
    word_count: int
    date_added: str
    published_at: Optional[str] = None
    relay_provider: Optional[str] = None
    degraded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ProgressStage(Enum):
    PROBING = "probing"
    RETRIEVING = "retrieving"
    PARSING = "parsing"
    SYNTHESIZING = "synthesizing"


class AccessibilityStatus(Enum):
    ACCESSIBLE = "accessible"
    INACCESSIBLE = "inaccessible"
    UNKNOWN = "unknown"


@dataclass
class ProbeResult:
    status: AccessibilityStatus
    http_status: Optional[int] = None
    message: str = ""

    @property
    def accessible(self) -> bool:
        return self.status is AccessibilityStatus.ACCESSIBLE
