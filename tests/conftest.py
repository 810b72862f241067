import pytest

from service_health.errors import IncidentFetchError


class FakeIssueSource:
    """
    Stands in for GraphClient.fetch_issue.

    details maps issue id -> detail dict; any id in `failing` raises
    IncidentFetchError, anything unknown raises as a 404 would.
    """

    def __init__(self, details: dict, failing: set[str] | None = None) -> None:
        self.details = details
        self.failing = failing or set()
        self.calls: list[str] = []

    async def fetch_issue(self, issue_id: str) -> dict:
        self.calls.append(issue_id)
        if issue_id in self.failing or issue_id not in self.details:
            raise IncidentFetchError(issue_id, "404 Not Found")
        return self.details[issue_id]


@pytest.fixture
def make_source():
    return FakeIssueSource
