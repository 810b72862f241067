
# converts an incident's raw "posts" list into NormalizedUpdate objects.

# Output is newest first. Python's sort is stable (also with reverse=True), so
# posts sharing a timestamp keep their upstream order. Posts without a
# parseable createdDateTime cannot be placed in the timeline and are dropped.

import logging
from typing import Any

from service_health.config import HISTORY_POST_LIMIT
from service_health.models import NormalizedUpdate, parse_dt

log = logging.getLogger(__name__)


def post_content(post: dict[str, Any]) -> str:
    """
    Plain-text body of a post.

    Graph nests it under description.content; older payloads carry a bare
    description string or a top-level content field.
    """
    description = post.get("description")
    if isinstance(description, dict) and description.get("content"):
        return str(description["content"])
    if isinstance(description, str) and description:
        return description
    return str(post.get("content") or "")


def normalize_updates(posts: list[dict[str, Any]] | None, historical: bool = False) -> list[NormalizedUpdate]:
    """
    Normalize and sort posts by creation time, newest first.

    historical=True keeps only the HISTORY_POST_LIMIT most recent posts.
    """
    result: list[NormalizedUpdate] = []

    for post in posts or []:
        if not isinstance(post, dict):
            continue
        created_at = parse_dt(post.get("createdDateTime"))
        if created_at is None:
            log.debug("Dropping post without createdDateTime: %r", post.get("postType"))
            continue
        result.append(NormalizedUpdate(
            created_at=created_at,
            post_type=post.get("postType"),
            content=post_content(post),
        ))

    result.sort(key=lambda u: u.created_at, reverse=True)

    if historical:
        return result[:HISTORY_POST_LIMIT]
    return result
