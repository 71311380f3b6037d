"""Turn analysis issues into a prioritized report and a plain-text summary."""
from typing import Dict, List, Sequence

from seocrawl.domain.seo_issue import SeoIssue

PRIORITY_ORDER = {"Critical": 0, "High": 1, "Medium": 2, "Low": 3}
RULE = "=" * 55
THIN_RULE = "-" * 55


def normalize_priority(priority: str) -> str:
    return priority[:1].upper() + priority[1:].lower()


def issue_type(category: str, priority: str) -> str:
    """CRITICAL/HIGH are issues, the opportunities category is an opportunity, the rest warnings."""
    if priority.upper() in ("CRITICAL", "HIGH"):
        return "Issue"
    if category == "opportunities":
        return "Opportunity"
    return "Warning"


def format_issue(issue: SeoIssue, total_pages: int) -> dict:
    percent = round(issue.affected_count / total_pages * 100, 2) if total_pages else 0.0
    return {
        "issueName": issue.title or issue.query,
        "query": issue.query,
        "issueType": issue_type(issue.category, issue.priority),
        "issuePriority": normalize_priority(issue.priority),
        "urls": issue.affected_count,
        "percentOfTotal": percent,
        "description": issue.description,
        "impact": issue.impact,
        "howToFix": issue.fix,
        "examples": [e.to_dict() for e in issue.examples],
    }


def format_report(issues: Sequence[SeoIssue], total_pages: int, execution_time: int) -> dict:
    formatted = [format_issue(i, total_pages) for i in issues]
    formatted.sort(key=lambda i: PRIORITY_ORDER.get(i["issuePriority"], len(PRIORITY_ORDER)))
    counts: Dict[str, int] = {p: 0 for p in PRIORITY_ORDER}
    for item in formatted:
        if item["issuePriority"] in counts:
            counts[item["issuePriority"]] += 1
    return {
        "overview": {
            "totalPages": total_pages,
            "totalIssues": len(formatted),
            "criticalIssues": counts["Critical"],
            "highPriorityIssues": counts["High"],
            "mediumPriorityIssues": counts["Medium"],
            "lowPriorityIssues": counts["Low"],
        },
        "issues": formatted,
        "executionTime": execution_time,
    }


def _section(lines: List[str], heading: str, issues: List[dict], detailed: bool) -> None:
    if not issues:
        return
    lines.append(heading)
    lines.append(THIN_RULE)
    for issue in issues:
        lines.append("")
        lines.append(issue["issueName"])
        lines.append(f"  URLs Affected:     {issue['urls']} ({issue['percentOfTotal']}%)")
        lines.append(f"  Type:              {issue['issueType']}")
        lines.append(f"  Description:       {issue['description']}")
        if detailed:
            lines.append(f"  Impact:            {issue['impact']}")
        lines.append(f"  How To Fix:        {issue['howToFix']}")
        if detailed:
            for example in issue["examples"]:
                detail = f" ({example['detail']})" if example.get("detail") else ""
                lines.append(f"    - {example['url']}{detail}")
    lines.append("")


def format_summary(report: dict, detailed: bool = False) -> str:
    overview = report["overview"]
    lines = [
        RULE,
        "              SEO AUDIT SUMMARY",
        RULE,
        "",
        f"Total Pages Crawled:     {overview['totalPages']:,}",
        f"Total Issues Found:      {overview['totalIssues']}",
        "",
        "Issues by Priority:",
        f"  Critical:              {overview['criticalIssues']}",
        f"  High:                  {overview['highPriorityIssues']}",
        f"  Medium:                {overview['mediumPriorityIssues']}",
        f"  Low:                   {overview['lowPriorityIssues']}",
        "",
        f"Analysis Time:           {report['executionTime']}ms",
        RULE,
        "",
    ]
    by_priority = {p: [i for i in report["issues"] if i["issuePriority"] == p] for p in PRIORITY_ORDER}
    _section(lines, "CRITICAL ISSUES (Fix Immediately)", by_priority["Critical"], detailed)
    _section(lines, "HIGH PRIORITY ISSUES", by_priority["High"], detailed)
    _section(lines, "MEDIUM PRIORITY ISSUES", by_priority["Medium"], detailed)
    _section(lines, "LOW PRIORITY ISSUES", by_priority["Low"], detailed)
    return "\n".join(lines)
