"""
Offline evaluation of the profile extractor against labelled fixtures.

A fixture file is a JSON list of objects:
  {"name": ..., "description": ..., "input": {<GitHub profile>},
   "candidate_emails": [...], "expected": {<ExtractedProfile>}}
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from models.extracted_profile import Employer, ExtractedProfile
from models.github import GitHubUserProfile
from ports.extractor import ProfileExtractorPort


logger = logging.getLogger(__name__)

EVAL_FIELDS: Tuple[str, ...] = ("country", "employers", "linkedin_url", "website_url", "university", "email")

# Spellings treated as the same country when comparing
COUNTRY_ALIASES: Dict[str, List[str]] = {
    "united states": ["us", "usa", "united states of america", "u.s.", "u.s.a."],
    "united kingdom": ["uk", "great britain", "england", "gb"],
    "germany": ["deutschland"],
}


@dataclass
class FieldResult:
    field: str
    expected: Any
    actual: Any
    match: bool
    details: str = ""


@dataclass
class FixtureResult:
    name: str
    description: str
    passed: bool
    fields: List[FieldResult] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class EvalFixture:
    name: str
    description: str
    profile: GitHubUserProfile
    expected: ExtractedProfile
    candidate_emails: List[str] = field(default_factory=list)


def normalize_country(country: Optional[str]) -> Optional[str]:
    if not country:
        return None
    normalized = country.lower().strip()
    for canonical, aliases in COUNTRY_ALIASES.items():
        if normalized == canonical or normalized in aliases:
            return canonical
    return normalized


def _employer_name(name: str) -> str:
    return name.strip().lstrip("@").lower().strip()


def employer_matches(expected: Employer, actual: Employer) -> bool:
    e, a = _employer_name(expected.name), _employer_name(actual.name)
    return (e == a or e in a or a in e) and expected.current == actual.current


def compare_employers(expected: Sequence[Employer], actual: Sequence[Employer]) -> Tuple[bool, str]:
    """All expected employers found, and at least half of the actual ones are expected."""
    if not expected and not actual:
        return True, "both empty"

    matched_expected: set[int] = set()
    matched_actual: set[int] = set()
    for i, exp in enumerate(expected):
        for j, act in enumerate(actual):
            if j not in matched_actual and employer_matches(exp, act):
                matched_expected.add(i)
                matched_actual.add(j)
                break

    all_expected = len(matched_expected) == len(expected)
    precision = len(matched_actual) / len(actual) if actual else 1.0

    details = f"matched {len(matched_expected)}/{len(expected)} expected"
    missing = [e.name for i, e in enumerate(expected) if i not in matched_expected]
    extra = [a.name for j, a in enumerate(actual) if j not in matched_actual]
    if missing:
        details += f", missing: {', '.join(missing)}"
    if extra:
        details += f", extra: {', '.join(extra)}"
    return all_expected and precision >= 0.5, details


def compare_field(name: str, expected: ExtractedProfile, actual: ExtractedProfile) -> FieldResult:
    exp = getattr(expected, name)
    act = getattr(actual, name)

    if name == "employers":
        match, details = compare_employers(exp, act)
        return FieldResult(
            name,
            [e.model_dump() for e in exp],
            [a.model_dump() for a in act],
            match,
            details,
        )

    if name == "country":
        return FieldResult(name, exp, act, normalize_country(exp) == normalize_country(act))

    if isinstance(exp, str) and isinstance(act, str):
        e, a = exp.lower().strip(), act.lower().strip()
        return FieldResult(name, exp, act, e == a or e in a or a in e)

    if exp is None:
        # Extra information is acceptable
        return FieldResult(name, exp, act, True)
    if act is None:
        return FieldResult(name, exp, act, False)
    return FieldResult(name, exp, act, exp == act)


def load_fixtures(path: str | Path) -> List[EvalFixture]:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"Fixture file must hold a JSON list: {path}")
    fixtures: List[EvalFixture] = []
    for item in raw:
        fixtures.append(
            EvalFixture(
                name=item["name"],
                description=item.get("description", ""),
                profile=GitHubUserProfile.model_validate(item["input"]),
                expected=ExtractedProfile.model_validate(item["expected"]),
                candidate_emails=list(item.get("candidate_emails") or []),
            )
        )
    return fixtures


def run_fixture(extractor: ProfileExtractorPort, fixture: EvalFixture) -> FixtureResult:
    try:
        actual = extractor.extract(fixture.profile, fixture.candidate_emails or None)
    except Exception as e:
        # One failing fixture is a failed result, never an aborted eval
        logger.warning(
            f"Extraction failed for fixture {fixture.name}",
            extra={"step": "extraction_eval", "status": "error", "error": type(e).__name__},
        )
        return FixtureResult(fixture.name, fixture.description, False, error=str(e))

    fields = [compare_field(name, fixture.expected, actual) for name in EVAL_FIELDS]
    return FixtureResult(fixture.name, fixture.description, all(f.match for f in fields), fields)


def run_eval(extractor: ProfileExtractorPort, fixtures: Sequence[EvalFixture]) -> List[FixtureResult]:
    results = []
    for fixture in fixtures:
        logger.info(f"Running: {fixture.name}...", extra={"step": "extraction_eval"})
        results.append(run_fixture(extractor, fixture))
    return results


def field_accuracy(results: Sequence[FixtureResult]) -> Dict[str, Tuple[int, int]]:
    """field -> (matched, total) over fixtures that produced a result."""
    stats: Dict[str, Tuple[int, int]] = {}
    for result in results:
        for f in result.fields:
            ok, total = stats.get(f.field, (0, 0))
            stats[f.field] = (ok + (1 if f.match else 0), total + 1)
    return stats


def print_eval_report(results: Sequence[FixtureResult]) -> None:
    print("=" * 60)
    print("EXTRACTION EVAL - RESULTS")
    print("=" * 60)
    for result in results:
        print(f"\n{'PASS' if result.passed else 'FAIL'}: {result.name}")
        if result.description:
            print(f"  {result.description}")
        if result.error:
            print(f"  ERROR: {result.error}")
            continue
        for f in result.fields:
            print(f"  [{'ok' if f.match else 'x'}] {f.field}:")
            print(f"      expected: {json.dumps(f.expected, ensure_ascii=False)}")
            print(f"      actual:   {json.dumps(f.actual, ensure_ascii=False)}" + (f" ({f.details})" if f.details else ""))

    passed = sum(1 for r in results if r.passed)
    total = len(results)
    rate = (passed / total * 100) if total else 0.0
    print("\n" + "=" * 60)
    print(f"Total: {total}")
    print(f"Passed: {passed}")
    print(f"Failed: {total - passed}")
    print(f"Pass rate: {rate:.1f}%")
    print("\nField-level accuracy:")
    for name, (ok, n) in field_accuracy(results).items():
        print(f"  {name}: {ok / n * 100:.1f}% ({ok}/{n})")
    print("=" * 60)
