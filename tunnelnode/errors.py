"""Error taxonomy for provider calls and tunnel orchestration."""


class TunnelNodeError(Exception):
    """Base class for every error raised by tunnelnode."""


class ConfigError(TunnelNodeError):
    """Invalid or missing configuration value."""


class APIError(TunnelNodeError):
    """Generic provider failure: transport error, undecodable or missing error body.

    :param message: Human readable description
    :param method: HTTP method of the failed call
    :param endpoint: Endpoint relative to the provider base URL
    :param status: HTTP status code, or None when no response was received

    When raised while collecting a paged listing, ``partial`` holds the items
    gathered before the failing page.
    """

    def __init__(
        self,
        message: str,
        *,
        method: str | None = None,
        endpoint: str | None = None,
        status: int | None = None,
    ):
        super().__init__(message)
        self.method = method
        self.endpoint = endpoint
        self.status = status
        self.partial: list = []


class ProviderError(APIError):
    """Structured error decoded from a non-2xx provider response."""

    def __init__(
        self,
        entries: list[dict],
        *,
        method: str | None = None,
        endpoint: str | None = None,
        status: int | None = None,
    ):
        self.entries = [
            {"field": e.get("field") or "", "reason": e.get("reason") or ""}
            for e in entries
        ]
        super().__init__(
            self._render(self.entries), method=method, endpoint=endpoint, status=status
        )

    @staticmethod
    def _render(entries: list[dict]) -> str:
        parts = []
        for entry in entries:
            if entry["field"]:
                parts.append(f"{entry['reason']} (field '{entry['field']}')")
            else:
                parts.append(entry["reason"])
        return ";".join(parts)

    @property
    def is_auth_error(self) -> bool:
        return self.status == 401

    @property
    def is_permissions_error(self) -> bool:
        return self.status == 403


class ValidationError(TunnelNodeError):
    """A required request field is missing or malformed."""


class GuardError(TunnelNodeError):
    """The tunnel role precondition for an operation does not hold."""


class TunnelExistsError(GuardError):
    def __init__(self, role: str):
        super().__init__("Tunnel already exists")
        self.role = role


class TunnelMissingError(GuardError):
    def __init__(self, role: str):
        super().__init__("Tunnel does not exist")
        self.role = role


class ScriptMissingError(TunnelNodeError):
    def __init__(self, label: str):
        super().__init__(f"Stackscript is missing: {label}")
        self.label = label


class ConvergenceTimeout(TunnelNodeError):
    """Instance did not reach ``running`` within the polling attempt limit.

    ``last_seen`` holds the most recent snapshot fetched while polling.
    """

    def __init__(self, instance_id: int, attempts: int, last_seen: dict | None = None):
        super().__init__("Instance took too long to come online")
        self.instance_id = instance_id
        self.attempts = attempts
        self.last_seen = last_seen
