
# exception taxonomy for a collection run.

# fatal errors (configuration, authentication, overview fetch) abort the run
# before anything is written. IncidentFetchError is recoverable: the enricher
# reports it and the incident is left out of the snapshot.


class ServiceHealthError(Exception):
    """Base class for every error raised by the collector."""


class ConfigurationError(ServiceHealthError):
    pass


class AuthenticationError(ServiceHealthError):
    pass


class OverviewFetchError(ServiceHealthError):
    pass


class IncidentFetchError(ServiceHealthError):

    def __init__(self, issue_id: str, message: str) -> None:
        super().__init__(f"{issue_id}: {message}")
        self.issue_id = issue_id
