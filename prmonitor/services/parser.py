"""Parse gh JSON output into pull requests and PR details."""

import json
import logging
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from prmonitor.errors import ParseError
from prmonitor.models import ItemDetail, Label, PRCategory, PullRequest, RepositoryInfo

LOG = logging.getLogger("prmonitor.services.parser")

# Tried in order: with fractional seconds, then without
TIMESTAMP_FORMATS = (
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO 8601 timestamp with or without sub-second precision.

    Naive results are taken as UTC.

    Raises:
        ParseError: No known format matches.
    """
    if not isinstance(value, str) or not value.strip():
        raise ParseError(f"Cannot decode date string {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    for fmt in TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        # Naive timestamps and offsets strptime rejects
        dt = datetime.fromisoformat(text)
    except ValueError as e:
        raise ParseError(f"Cannot decode date string {value!r}") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def _load_json(raw_text: str) -> Any:
    try:
        return json.loads(raw_text)
    except (TypeError, ValueError) as e:
        raise ParseError(f"Invalid JSON from gh: {e}") from e


def _labels_from_api(data: Any) -> list[Label]:
    labels = []
    for lb in data or []:
        if isinstance(lb, dict) and lb.get("name"):
            labels.append(Label(id=str(lb.get("id") or lb["name"]), name=lb["name"], color=lb.get("color") or ""))
    return labels


def _pr_from_api(data: dict[str, Any], category: PRCategory) -> PullRequest:
    repo = data["repository"]
    author = data.get("author") or {}
    return PullRequest(
        number=data["number"],
        title=data.get("title") or "",
        repository=RepositoryInfo(name=repo.get("name") or "", name_with_owner=repo["nameWithOwner"]),
        url=data.get("url") or "",
        author=author.get("login") or "",
        updated_at=parse_timestamp(data["updatedAt"]),
        labels=_labels_from_api(data.get("labels")),
        category=category,
        is_draft=bool(data.get("isDraft", False)),
    )


def parse_items(raw_text: str, category: PRCategory) -> list[PullRequest]:
    """Parse gh search prs --json output.

    Raises:
        ParseError: Output is not a JSON list of PR objects with the required keys.
    """
    data = _load_json(raw_text)
    if not isinstance(data, list):
        raise ParseError(f"Expected a JSON list of pull requests, got {type(data).__name__}")
    items = []
    for entry in data:
        if not isinstance(entry, dict):
            raise ParseError(f"Expected a pull request object, got {type(entry).__name__}")
        try:
            items.append(_pr_from_api(entry, category))
        except (KeyError, TypeError, AttributeError, ValidationError) as e:
            raise ParseError(f"Malformed pull request entry: {e!r}") from e
    LOG.debug("Parsed %d %s pull requests", len(items), category.value)
    return items


def parse_detail(raw_text: str) -> ItemDetail:
    """Parse gh pr view --json output.

    Raises:
        ParseError: Output is not a JSON object with headRefName.
    """
    data = _load_json(raw_text)
    if not isinstance(data, dict):
        raise ParseError(f"Expected a JSON object for PR detail, got {type(data).__name__}")
    try:
        return ItemDetail.model_validate(data)
    except ValidationError as e:
        raise ParseError(f"Malformed PR detail: {e}") from e
