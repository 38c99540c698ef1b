"""Sample pull requests served in demo mode (display.demo_mode)."""

from datetime import datetime, timedelta

from prmonitor.models import BuildStatus, Label, PRCategory, PullRequest, RepositoryInfo

_CAT_SHOW = RepositoryInfo(name="cat-show-tracker", name_with_owner="feline-federation/cat-show-tracker")
_CHEESE = RepositoryInfo(name="cheese-cellar-manager", name_with_owner="fromagerie/cheese-cellar-manager")

# (number, title, repo, author, branch, age, status, labels, category, draft)
_SAMPLES = [
    (267, "Update cat ear tufts measurement guidelines", _CAT_SHOW, "judge-whiskers", "docs/ear-tuft-standards",
     timedelta(hours=1), BuildStatus.SUCCESS, [("1", "documentation", "0075ca")], PRCategory.REVIEW_REQUESTED, False),
    (203, "Refactor Persian cat coat quality scoring system", _CAT_SHOW, "cat-judge-marie", "refactor/persian-scoring",
     timedelta(minutes=30), BuildStatus.PENDING, [("2", "refactoring", "fbca04")], PRCategory.REVIEW_REQUESTED, False),
    (421, "Add temperature monitoring for cave aging rooms", _CHEESE, "demo-user", "feature/temperature-sensors",
     timedelta(hours=1), BuildStatus.SUCCESS, [("3", "enhancement", "a2eeef")], PRCategory.AUTHORED, False),
    (387, "Implement Camembert ripeness detection algorithm", _CHEESE, "demo-user", "feature/camembert-ai",
     timedelta(hours=2), BuildStatus.FAILURE, [("4", "bug", "d73a4a")], PRCategory.AUTHORED, False),
    (512, "Update cheese rotation schedule for blue varieties", _CHEESE, "demo-user", "fix/roquefort-rotation",
     timedelta(minutes=30), BuildStatus.PENDING, [], PRCategory.AUTHORED, False),
    (445, "Merge brie and camembert aging profiles", _CHEESE, "demo-user", "feature/unified-soft-cheese",
     timedelta(hours=3), BuildStatus.CONFLICT, [("6", "needs-rebase", "d93f0b")], PRCategory.AUTHORED, False),
    (299, "WIP: Experimental mold detection via computer vision", _CHEESE, "demo-user", "experiment/cv-mold-detection",
     timedelta(days=4), BuildStatus.INACTIVE, [("7", "experimental", "e4e669")], PRCategory.AUTHORED, True),
    (498, "Draft: Parmesan aging time calculator", _CHEESE, "demo-user", "draft/parmesan-calculator",
     timedelta(minutes=45), BuildStatus.PENDING, [("9", "work-in-progress", "d4c5f9")], PRCategory.AUTHORED, True),
]


def sample_pull_requests(now: datetime) -> list[PullRequest]:
    """Fresh sample PRs with update times relative to now, review requests first."""
    prs = []
    for number, title, repo, author, branch, age, status, labels, category, draft in _SAMPLES:
        prs.append(
            PullRequest(
                number=number,
                title=title,
                repository=repo,
                url=f"https://github.com/{repo.name_with_owner}/pull/{number}",
                author=author,
                head_ref_name=branch,
                updated_at=now - age,
                labels=[Label(id=i, name=n, color=c) for i, n, c in labels],
                category=category,
                is_draft=draft,
                status=status,
            )
        )
    return prs
