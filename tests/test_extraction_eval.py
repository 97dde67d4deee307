from __future__ import annotations

import json
from pathlib import Path

from fakes import FakeExtractor
from models.extracted_profile import Employer, ExtractedProfile
from services.extraction_eval import (
    compare_employers,
    compare_field,
    field_accuracy,
    load_fixtures,
    normalize_country,
    run_eval,
)
from services.profile_extractor import StubProfileExtractor

FIXTURES = Path(__file__).resolve().parents[1] / "fixtures" / "extraction_eval.json"


def _profile(**fields):
    base = dict(country=None, employers=[], linkedin_url=None, website_url=None, university=None, email=None)
    base.update(fields)
    return ExtractedProfile(**base)


def test_country_aliases_compare_equal():
    assert normalize_country("USA") == normalize_country("United States")
    assert normalize_country(" England ") == "united kingdom"
    assert normalize_country("Deutschland") == "germany"
    assert normalize_country(None) is None
    assert compare_field("country", _profile(country="United States"), _profile(country="US")).match


def test_employer_matching_rules():
    expected = [Employer(name="Vercel", current=True), Employer(name="Stripe", current=False)]
    ok, _ = compare_employers(expected, [Employer(name="@vercel", current=True), Employer(name="Stripe Inc", current=False)])
    assert ok
    # Right name, wrong current flag
    ok, details = compare_employers(expected[:1], [Employer(name="Vercel", current=False)])
    assert not ok and "missing: Vercel" in details
    # All expected found but precision below one half
    noisy = [Employer(name="Vercel", current=True), Employer(name="A", current=False), Employer(name="B", current=False)]
    ok, details = compare_employers(expected[:1], noisy)
    assert not ok and "extra: A, B" in details
    assert compare_employers([], []) == (True, "both empty")


def test_string_and_null_rules():
    assert compare_field("university", _profile(university="Stanford"), _profile(university="stanford university")).match
    # Extra information is accepted
    assert compare_field("email", _profile(), _profile(email="x@example.com")).match
    # Missing information is a miss
    assert not compare_field("email", _profile(email="x@example.com"), _profile()).match


def test_sample_fixtures_load():
    fixtures = load_fixtures(FIXTURES)
    assert len(fixtures) >= 3
    assert all(f.profile.login for f in fixtures)


def test_run_eval_reports_failures_and_accuracy(tmp_path):
    fixture = {
        "name": "one",
        "description": "",
        "input": {"id": 1, "login": "octo", "email": "octo@example.com"},
        "expected": {
            "country": "United States",
            "employers": [{"name": "Acme", "current": True}],
            "linkedin_url": None,
            "website_url": None,
            "university": None,
            "email": "octo@example.com",
        },
    }
    path = tmp_path / "fixtures.json"
    path.write_text(json.dumps([fixture, {**fixture, "name": "broken"}]), encoding="utf-8")
    extractor = FakeExtractor(fail_for=[])
    results = run_eval(extractor, load_fixtures(path))
    assert [r.passed for r in results] == [True, True]

    failing = run_eval(FakeExtractor(fail_for=["octo"]), load_fixtures(path))
    assert all(not r.passed and r.error for r in failing)
    assert field_accuracy(failing) == {}

    accuracy = field_accuracy(run_eval(StubProfileExtractor(), load_fixtures(path)))
    assert accuracy["email"] == (2, 2)
    assert accuracy["country"] == (0, 2)


class _BrokenProvider:
    def __init__(self, fail_for):
        self.fail_for = set(fail_for)

    def extract(self, profile, candidate_emails=None):
        if profile.login in self.fail_for:
            raise NotImplementedError("Provider not implemented: mystery")
        return FakeExtractor().extract(profile, candidate_emails)


def test_unexpected_provider_error_fails_only_that_fixture():
    fixtures = load_fixtures(FIXTURES)
    broken = fixtures[0].profile.login
    results = run_eval(_BrokenProvider([broken]), fixtures)
    assert len(results) == len(fixtures)
    assert not results[0].passed
    assert "Provider not implemented" in results[0].error
    assert all(r.error is None and r.fields for r in results[1:])
