"""
Ingestion failure taxonomy.

Transient upstream failures (rate limiting, non-2xx responses) are retried
by the clients and surface only once retries are exhausted. A missing
credential is a configuration error and is never retried. Parse failures
are per-record and never abort a run.

Unresolved species and unmapped sets are NOT exceptions: they are carried
as sentinel values and reported through logging.
"""

from enum import Enum


class FailureKind(str, Enum):
    """Classification of ingestion failures."""

    RATE_LIMITED = "rate_limited"
    HTTP_ERROR = "http_error"
    MISSING_CREDENTIAL = "missing_credential"
    PARSE_FAILURE = "parse_failure"
    UPLOAD_FAILED = "upload_failed"


class PipelineError(Exception):
    """Base class for all ingestion errors."""

    kind: FailureKind
    retryable: bool = True


class RateLimitedError(PipelineError):
    """Upstream answered HTTP 429."""

    kind = FailureKind.RATE_LIMITED

    def __init__(self, url: str) -> None:
        self.url = url
        self.status_code = 429
        super().__init__(f"429: Rate limit reached for {url}")


class HttpStatusError(PipelineError):
    """Upstream answered with a non-2xx status other than 429."""

    kind = FailureKind.HTTP_ERROR

    def __init__(self, url: str, status_code: int, reason: str = "") -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(f"API request failed with status {status_code}: {reason}".rstrip(": "))


class MissingCredentialError(PipelineError):
    """A required API key is not configured."""

    kind = FailureKind.MISSING_CREDENTIAL
    retryable = False

    def __init__(self, name: str = "POKEMON_TCG_API_KEY") -> None:
        self.name = name
        super().__init__(f"Pokemon TCG API key is missing, set {name}")


class ParseFailure(PipelineError):
    """An HTML page lacks the markup a card record requires."""

    kind = FailureKind.PARSE_FAILURE
    retryable = False

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Could not parse {url}: {reason}")


class UploadError(PipelineError):
    """Writing a snapshot to object storage failed."""

    kind = FailureKind.UPLOAD_FAILED
    retryable = False
