class EnrichmentError(Exception):
    """Base class for everything the enrichment layer raises."""


class CollaboratorUnavailable(EnrichmentError):
    def __init__(self, service: str, reason: str = None, status_code: int = None):
        self.service = service
        self.status_code = status_code
        self.reason = reason or f"{service} service is unavailable"
        super().__init__(self.reason)


class AnnotationUnavailable(CollaboratorUnavailable):
    """A statistics lookup failed. Callers of the annotator never see this."""

    def __init__(self, name: str, reason: str = None, status_code: int = None):
        self.name = name
        super().__init__(
            "stats",
            reason or f"No statistics available for '{name}'",
            status_code
        )


class MalformedRecord(EnrichmentError):
    def __init__(self, kind: str, reason: str = None):
        self.kind = kind
        self.reason = reason or f"Malformed {kind} record"
        super().__init__(self.reason)


class InvalidInput(EnrichmentError):
    def __init__(self, field: str, reason: str = None):
        self.field = field
        self.reason = reason or f"{field} is required"
        super().__init__(self.reason)
