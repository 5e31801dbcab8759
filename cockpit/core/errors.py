class CockpitError(Exception):
    """Base class for errors the API reports as a distinguishable result."""

    code = "cockpit_error"
    status_code = 500

    def __init__(self, message: str = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class ConfigurationError(CockpitError):
    code = "configuration_error"
    status_code = 503


class NotAuthenticated(CockpitError):
    code = "not_authenticated"
    status_code = 401


class PermissionDenied(CockpitError):
    code = "permission_denied"
    status_code = 403


class NotFound(CockpitError):
    code = "not_found"
    status_code = 404


class UpstreamQueryError(CockpitError):
    """Identity/profile store read failed."""

    code = "upstream_query_error"
    status_code = 502


class ProviderError(CockpitError):
    """LLM or speech provider call failed or returned nothing usable."""

    code = "provider_error"
    status_code = 502
