from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class IssueExample:
    url: str
    detail: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"url": self.url}
        if self.detail is not None:
            data["detail"] = self.detail
        return data


@dataclass
class SeoIssue:
    """Result of one analysis query that returned at least one row."""
    query: str
    category: str
    priority: str
    title: str
    description: str
    impact: str
    fix: str
    affected_count: int
    examples: List[IssueExample] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "query": self.query,
            "category": self.category,
            "priority": self.priority,
            "title": self.title,
            "description": self.description,
            "impact": self.impact,
            "fix": self.fix,
            "affectedCount": self.affected_count,
            "examples": [e.to_dict() for e in self.examples],
        }
