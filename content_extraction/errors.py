"""
Exceptions raised inside the extraction pipeline
"""

from utils.network import InvalidURLError


class ExtractionError(Exception):
    """Base exception for extraction pipeline errors"""
    pass


class RelayError(ExtractionError):
    """A single relay attempt failed; RelayChain absorbs these"""

    def __init__(self, provider_id: str, message: str):
        super().__init__(f"[{provider_id}] {message}")
        self.provider_id = provider_id


class TimedOut(ExtractionError):
    """An awaited operation did not finish before its deadline"""

    def __init__(self, label: str, timeout_s: float):
        super().__init__(f"{label} timed out after {timeout_s:g}s")
        self.label = label
        self.timeout_s = timeout_s


class TransportError(RelayError):
    """Network-level failure talking to a relay"""
    pass


class BadStatus(RelayError):
    """Relay answered with a non-2xx status"""

    def __init__(self, provider_id: str, status_code: int):
        super().__init__(provider_id, f"HTTP {status_code}")
        self.status_code = status_code


class DecodeError(RelayError):
    """Relay response envelope could not be decoded into markup"""
    pass


class AllProvidersExhausted(ExtractionError):
    """Every configured relay provider failed"""

    def __init__(self, attempts=None):
        self.attempts = list(attempts or [])
        if self.attempts:
            summary = ', '.join(
                f"{a.provider.identifier}={a.outcome.value}" for a in self.attempts
            )
        else:
            summary = 'no relay providers configured'
        super().__init__(f"All relay providers failed ({summary})")


class UnparsableMarkup(ExtractionError):
    """Markup is empty or not text"""
    pass


class NoContentFound(ExtractionError):
    """No region of the document cleared the content threshold"""

    def __init__(self, message: str = "No main content found", candidate=None):
        super().__init__(message)
        # Best partial candidate, possibly usable by the caller
        self.candidate = candidate


__all__ = [
    'ExtractionError', 'RelayError', 'TimedOut', 'TransportError', 'BadStatus',
    'DecodeError', 'AllProvidersExhausted', 'UnparsableMarkup', 'NoContentFound',
    'InvalidURLError',
]
