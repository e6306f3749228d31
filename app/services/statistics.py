"""Read-side rollups and list filtering over an in-memory snapshot of issues."""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from app.models.domain import Issue
from app.models.enums import IssueCategory, IssuePriority, IssueStatus
from app.services.visibility import display_reporter_name


@dataclass
class IssueStatistics:
    total: int = 0
    by_status: Dict[str, int] = field(default_factory=dict)
    by_category: Dict[str, int] = field(default_factory=dict)
    by_priority: Dict[str, int] = field(default_factory=dict)


def compute_statistics(issues: Iterable[Issue]) -> IssueStatistics:
    """
    Count issues by status, category and priority.

    Pure function of its input: every enumeration member is present, zero
    when unused, so two calls over the same snapshot are identical.
    """
    stats = IssueStatistics(
        by_status={s.value: 0 for s in IssueStatus},
        by_category={c.value: 0 for c in IssueCategory},
        by_priority={p.value: 0 for p in IssuePriority},
    )
    for issue in issues:
        stats.total += 1
        stats.by_status[IssueStatus(issue.status).value] += 1
        stats.by_category[IssueCategory(issue.category).value] += 1
        stats.by_priority[IssuePriority(issue.priority).value] += 1
    return stats


def filter_issues(
    issues: Iterable[Issue],
    search: Optional[str] = None,
    status: Optional[IssueStatus] = None,
    category: Optional[IssueCategory] = None
) -> List[Issue]:
    """Case-insensitive search over title, description, location and reporter, plus exact filters."""
    needle = (search or "").strip().lower()
    matched = []
    for issue in issues:
        if status is not None and issue.status != status:
            continue
        if category is not None and issue.category != category:
            continue
        if needle and not any(
            needle in (text or "").lower()
            for text in (issue.title, issue.description, issue.location_name, display_reporter_name(issue))
        ):
            continue
        matched.append(issue)
    return matched


def sort_newest_first(issues: Iterable[Issue]) -> List[Issue]:
    return sorted(issues, key=lambda i: i.created_at, reverse=True)


def recent_activity(issues: Iterable[Issue], limit: int = 5) -> List[Issue]:
    """Most recently touched issues, for dashboards."""
    return sorted(issues, key=lambda i: i.updated_at, reverse=True)[:limit]
