"""
Audit scoring.

Each severity tier has a fixed weight. A finding contributes its tier weight
divided by the number of findings in that tier, so many findings in one tier
do not dominate the score. The total is scaled against the score the same
number of Low findings would reach.
"""

from typing import Dict, List

from .models import AuditSummary, Severity, Vulnerability


SEVERITY_WEIGHTS: Dict[Severity, int] = {
    Severity.low: 3,
    Severity.medium: 2,
    Severity.high: 1,
}

MAX_WEIGHT = max(SEVERITY_WEIGHTS.values())


def count_by_severity(vulnerabilities: List[Vulnerability]) -> Dict[Severity, int]:
    counts = {severity: 0 for severity in Severity}
    for vulnerability in vulnerabilities:
        counts[vulnerability.severity] += 1
    return counts


def calculate_audit_score(vulnerabilities: List[Vulnerability]) -> float:
    """
    Compute the 0-100 audit score, rounded to two decimals.

    An empty finding list scores 0.
    """
    if not vulnerabilities:
        return 0.0

    counts = count_by_severity(vulnerabilities)
    total = sum(
        SEVERITY_WEIGHTS[v.severity] / counts[v.severity]
        for v in vulnerabilities
    )
    max_score = len(vulnerabilities) * MAX_WEIGHT

    return round(total / max_score * 100, 2)


def summarize_audit(vulnerabilities: List[Vulnerability]) -> AuditSummary:
    return AuditSummary(
        score=calculate_audit_score(vulnerabilities),
        total=len(vulnerabilities),
        severity_counts=count_by_severity(vulnerabilities),
    )
