"""Risk score arithmetic and Annex A control code parsing."""

from __future__ import annotations

import re

from apps.api.app.db.models import Risk

HIGH_RISK_THRESHOLD = 36
MEDIUM_RISK_THRESHOLD = 15

_CODE_SEPARATORS = re.compile(r"[,;\s]+")


def calculate_risk_score(
    confidentiality: int, integrity: int, availability: int, likelihood: int
) -> int:
    return (confidentiality + integrity + availability) * likelihood


def calculate_mitigated_score(
    confidentiality: int | None,
    integrity: int | None,
    availability: int | None,
    likelihood: int | None,
) -> int | None:
    """Score after mitigation; unknown until every mitigated input is set."""
    if None in (confidentiality, integrity, availability, likelihood):
        return None
    return calculate_risk_score(confidentiality, integrity, availability, likelihood)


def risk_level(score: int) -> str:
    if score >= HIGH_RISK_THRESHOLD:
        return "HIGH"
    if score >= MEDIUM_RISK_THRESHOLD:
        return "MEDIUM"
    return "LOW"


def parse_control_codes(raw: str | None) -> list[str]:
    if not raw:
        return []
    codes: list[str] = []
    seen: set[str] = set()
    for piece in _CODE_SEPARATORS.split(raw):
        code = piece.strip()
        if code and code not in seen:
            seen.add(code)
            codes.append(code)
    return codes


def apply_scores(risk: Risk) -> Risk:
    """Recompute the derived score columns on a risk in place."""
    risk.calculated_score = calculate_risk_score(
        risk.confidentiality_score,
        risk.integrity_score,
        risk.availability_score,
        risk.likelihood,
    )
    if risk.risk_score is None:
        risk.risk_score = risk.calculated_score
    risk.mitigated_score = calculate_mitigated_score(
        risk.mitigated_confidentiality_score,
        risk.mitigated_integrity_score,
        risk.mitigated_availability_score,
        risk.mitigated_likelihood,
    )
    return risk
