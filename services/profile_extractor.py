from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from openai import OpenAIError
from pydantic import ValidationError

from models.extracted_profile import Employer, ExtractedProfile
from models.github import GitHubUserProfile
from ports.llm import LLMClientPort


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a precise data extraction assistant. Extract structured information "
    "from GitHub profiles and return only valid JSON."
)


class ExtractionError(RuntimeError):
    """The extraction provider failed or returned a payload outside the schema."""


def _or_na(value: Optional[str]) -> str:
    return value if value else "N/A"


def build_extraction_prompt(profile: GitHubUserProfile, candidate_emails: Optional[Sequence[str]] = None) -> str:
    """Create the extraction instruction for one profile."""
    if candidate_emails:
        email_instruction = (
            "6. email: The user's profile email is missing. Here are emails found in their git commits: "
            f"{', '.join(candidate_emails)}. Match one to this user based on name/username similarity. "
            "Return null if no confident match."
        )
    else:
        email_instruction = (
            f"6. email: Use the profile email if available: {_or_na(profile.email)}. "
            "Return null if not available."
        )

    return f"""Extract structured data from this GitHub profile. Be conservative - only extract information you're confident about.

GitHub Profile:
- Username: {profile.login}
- Name: {_or_na(profile.name)}
- Bio: {_or_na(profile.bio)}
- Location: {_or_na(profile.location)}
- Company: {_or_na(profile.company)}
- Blog/Website: {_or_na(profile.blog)}
- Twitter: {_or_na(profile.twitter_username)}

Extract:
1. country: Infer the country from the location field if possible. An explicit location always takes precedence over guesses based on the name, language or culture. Return null if uncertain.
2. employers: Extract past and current employers from the company field and bio. Mark at most one employer, the obviously current one, as current=true; all others current=false.
3. linkedin_url: Look for LinkedIn URLs in the bio or blog field. Return null if not found.
4. website_url: Extract personal website URL from the blog field (ignore LinkedIn, Twitter, or GitHub links). Return null if not found.
5. university: Look for university/college names in the bio. Return null if not found.
{email_instruction}

Return null for any field you cannot confidently determine.
Return format (JSON only, no other text):
{{"country": ..., "employers": [{{"name": ..., "current": ...}}], "linkedin_url": ..., "website_url": ..., "university": ..., "email": ...}}"""


def _response_format() -> Dict[str, Any]:
    return {
        "type": "json_schema",
        "json_schema": {
            "name": "enriched_profile",
            "schema": ExtractedProfile.model_json_schema(),
        },
    }


def _extract_json(text: Optional[str]) -> Optional[Any]:
    if not text:
        return None
    # Try raw parse first
    try:
        return json.loads(text)
    except ValueError:
        pass
    # Try fenced code block
    m = re.search(r"```(?:json)?\n([\s\S]*?)\n```", text)
    if m:
        try:
            return json.loads(m.group(1))
        except ValueError:
            pass
    # Try curly braces slice
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        try:
            return json.loads(text[start : end + 1])
        except ValueError:
            pass
    return None


class ProfileExtractor:
    """Turns one GitHub profile into validated ExtractedProfile fields.

    A single provider call per profile; no retries here, the orchestrator
    decides what a failure means for the record.
    """

    def __init__(self, llm: Optional[LLMClientPort] = None) -> None:
        if llm is None:
            from services.llm_client import LLMClient

            llm = LLMClient()
        self.llm = llm

    def extract(self, profile: GitHubUserProfile, candidate_emails: Optional[Sequence[str]] = None) -> ExtractedProfile:
        prompt = build_extraction_prompt(profile, candidate_emails)
        try:
            resp = self.llm.chat(
                use_case="profile_extraction",
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                response_format=_response_format(),
                prompt_name="profile_extraction",
                prompt_text=prompt,
                extras={"username": profile.login},
            )
        except OpenAIError as e:
            raise ExtractionError(f"Extraction provider failed for {profile.login}: {e}") from e

        choices = getattr(resp, "choices", None) or []
        content = choices[0].message.content if choices else None
        data = _extract_json(content)
        if not isinstance(data, dict):
            raise ExtractionError(f"No JSON object in extraction response for {profile.login}")
        try:
            return ExtractedProfile.model_validate(data)
        except ValidationError as e:
            raise ExtractionError(f"Extraction response failed schema validation for {profile.login}: {e}") from e


class StubProfileExtractor:
    """Deterministic, offline extractor; only wired in when RUN_ENV=test."""

    def extract(self, profile: GitHubUserProfile, candidate_emails: Optional[Sequence[str]] = None) -> ExtractedProfile:
        country = None
        if profile.location:
            country = profile.location.split(",")[-1].strip() or None
        employers: List[Employer] = []
        if profile.company:
            employers.append(Employer(name=profile.company.lstrip("@").strip(), current=True))
        website = profile.blog if profile.blog and "linkedin.com" not in profile.blog else None
        linkedin = profile.blog if profile.blog and "linkedin.com" in profile.blog else None
        email = profile.email or (candidate_emails[0] if candidate_emails else None)
        return ExtractedProfile(
            country=country,
            employers=employers,
            linkedin_url=linkedin,
            website_url=website,
            university=None,
            email=email,
        )
