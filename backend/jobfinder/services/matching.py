"""
Job Matching Service - Rule-Based Preference Filtering and Scoring

A scraped job matches a preference profile when it passes every filter the
profile configures, checked in order:

    title → keywords → location → contract type → salary → day rate

Match Score Composition (0-100):
    - Title (30): whole preferred title present, else share of its words
    - Keywords (25): share of keywords present in title + description
    - Location (20): 20 when remote-compatible, 15 for any other match
    - Contract Type (15)
    - Salary (10): 10 in range, 5 when out of range or unknown

Salaries are compared annualized: hourly figures ×2080, daily ×260.
"""

import math
import re
import time
from typing import Dict, List, Optional, Tuple

from jobfinder.middleware.metrics import record_match_score_latency
from jobfinder.schemas import JobData, MoneyRange, PreferenceCriteria, ScoredMatch
from jobfinder.schemas.preference import LocationPreference

TITLE_WORD_MATCH_RATIO = 0.6
HOURS_PER_YEAR = 2080
WORKING_DAYS_PER_YEAR = 260

LOCATION_VARIATIONS: Dict[str, List[str]] = {
    "new york": ["ny", "nyc", "new york city"],
    "california": ["ca", "calif"],
    "united kingdom": ["uk", "britain", "great britain"],
    "united states": ["usa", "us", "america"],
    "san francisco": ["sf", "san fran"],
    "los angeles": ["la", "los ang"],
}

CONTRACT_TYPE_VARIANTS: Dict[str, List[str]] = {
    "permanent": ["full", "permanent"],
    "contract": ["contract", "temp"],
    "freelance": ["freelance", "consultant"],
    "internship": ["intern"],
}

DAY_RATE_CONTRACT_TYPES = {"contract", "freelance"}

_NUMBER_PATTERN = re.compile(r"[\d,]+")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _significant_words(text: str) -> List[str]:
    return [word for word in text.split() if len(word) > 2]


def _contract_values(preference: PreferenceCriteria) -> List[str]:
    return [ct.value for ct in preference.contract_types]


def _job_text(job: JobData) -> str:
    return f"{job.title} {job.description or ''}".lower()


def matches_job_title(job_title: str, preferred_title: str) -> bool:
    job_title = job_title.lower()
    preferred_title = preferred_title.lower()

    if preferred_title in job_title:
        return True

    words = _significant_words(preferred_title)
    matched = [word for word in words if word in job_title]
    return len(matched) >= math.ceil(len(words) * TITLE_WORD_MATCH_RATIO)


def matches_keywords(job_text: str, keywords: List[str]) -> bool:
    """At least one keyword must appear; keywords over 4 chars may match word-by-word."""
    text = job_text.lower()

    for keyword in keywords:
        keyword = keyword.lower().strip()
        if keyword in text:
            return True
        if len(keyword) > 4 and all(word in text for word in keyword.split()):
            return True

    return False


def matches_location_variations(job_location: str, preferred_location: str) -> bool:
    variations = LOCATION_VARIATIONS.get(preferred_location, [])
    return any(variation in job_location for variation in variations)


def matches_location(job_location: Optional[str], preference: LocationPreference) -> bool:
    if preference.remote:
        return True

    if not job_location:
        return False

    job_location = job_location.lower()
    checks = [loc for loc in (preference.city, preference.state, preference.country) if loc]

    if not checks:
        return True

    for location in checks:
        location = location.lower()
        if location in job_location:
            return True
        if matches_location_variations(job_location, location):
            return True

    return False


def matches_contract_type(job_contract_type: Optional[str], preferred_types: List[str]) -> bool:
    if not job_contract_type:
        return True

    job_type = job_contract_type.lower()

    for preferred in preferred_types:
        preferred = preferred.lower()
        if any(variant in job_type for variant in CONTRACT_TYPE_VARIANTS.get(preferred, [])):
            return True
        if preferred in job_type:
            return True

    return False


def _extract_numbers(text: str) -> List[int]:
    numbers = []
    for group in _NUMBER_PATTERN.findall(text):
        digits = group.replace(",", "")
        if digits:
            numbers.append(int(digits))
    return numbers


def parse_salary(salary: str) -> Optional[Tuple[int, int]]:
    """
    Parse a free-text salary into an annualized (min, max).

    "$120,000 - $150,000" → (120000, 150000)
    "$50/hour"            → (104000, 104000)
    "£500 per day"        → (130000, 130000)

    Returns:
        None when the text holds no number
    """
    numbers = _extract_numbers(salary)
    if not numbers:
        return None

    low, high = min(numbers), max(numbers)

    text = salary.lower()
    multiplier = 1
    if "hour" in text or "/hr" in text:
        multiplier = HOURS_PER_YEAR
    elif "day" in text:
        multiplier = WORKING_DAYS_PER_YEAR

    return low * multiplier, high * multiplier


def matches_salary_range(salary: str, salary_range: MoneyRange) -> bool:
    parsed = parse_salary(salary)
    if parsed is None:
        return True

    low, high = parsed
    if salary_range.min and high < salary_range.min:
        return False
    if salary_range.max and low > salary_range.max:
        return False
    return True


def matches_day_rate_range(salary: str, day_rate_range: MoneyRange) -> bool:
    text = salary.lower()
    if "day" not in text and "daily" not in text:
        return True

    numbers = _extract_numbers(salary)
    if not numbers:
        return True

    day_rate = numbers[0]
    if day_rate_range.min and day_rate < day_rate_range.min:
        return False
    if day_rate_range.max and day_rate > day_rate_range.max:
        return False
    return True


def is_job_matching_preference(job: JobData, preference: PreferenceCriteria) -> bool:
    if preference.job_title and not matches_job_title(job.title, preference.job_title):
        return False

    if preference.keywords and not matches_keywords(_job_text(job), preference.keywords):
        return False

    if not matches_location(job.location, preference.location):
        return False

    contract_types = _contract_values(preference)
    if contract_types and not matches_contract_type(job.contract_type, contract_types):
        return False

    if job.salary and preference.salary_range:
        if not matches_salary_range(job.salary, preference.salary_range):
            return False

    if (
        job.salary
        and preference.day_rate_range
        and DAY_RATE_CONTRACT_TYPES.intersection(contract_types)
    ):
        if not matches_day_rate_range(job.salary, preference.day_rate_range):
            return False

    return True


def calculate_match_score(job: JobData, preference: PreferenceCriteria) -> int:
    score = 0

    # Title (30)
    if preference.job_title:
        job_title = job.title.lower()
        preferred_title = preference.job_title.lower()
        if preferred_title in job_title:
            score += 30
        else:
            words = _significant_words(preferred_title)
            if words:
                matched = [word for word in words if word in job_title]
                score += _round_half_up(len(matched) / len(words) * 30)
    else:
        score += 15

    # Keywords (25)
    if preference.keywords:
        text = _job_text(job)
        matched = [kw for kw in preference.keywords if kw.lower() in text]
        score += _round_half_up(len(matched) / len(preference.keywords) * 25)
    else:
        score += 12

    # Location (20)
    if matches_location(job.location, preference.location):
        if preference.location.remote or (job.location and "remote" in job.location.lower()):
            score += 20
        else:
            score += 15

    # Contract type (15)
    if matches_contract_type(job.contract_type, _contract_values(preference)):
        score += 15

    # Salary (10)
    if job.salary and (preference.salary_range or preference.day_rate_range):
        if preference.salary_range and matches_salary_range(job.salary, preference.salary_range):
            score += 10
        elif preference.day_rate_range and matches_day_rate_range(job.salary, preference.day_rate_range):
            score += 10
        else:
            score += 5
    else:
        score += 5

    return max(0, min(100, score))


def match_job_against_preferences(job: JobData, preferences: List[PreferenceCriteria]) -> List[str]:
    """Ids of every preference the job passes."""
    return [
        preference.id
        for preference in preferences
        if is_job_matching_preference(job, preference)
    ]


def match_job_against_preferences_with_score(
    job: JobData,
    preferences: List[PreferenceCriteria],
) -> List[ScoredMatch]:
    """
    Score the job against every preference it passes.

    Returns:
        Matches ordered by score, best first (stable for equal scores)
    """
    start = time.perf_counter()

    matches = [
        ScoredMatch(
            preference_id=preference.id,
            job=job,
            match_score=calculate_match_score(job, preference),
        )
        for preference in preferences
        if is_job_matching_preference(job, preference)
    ]
    matches.sort(key=lambda m: m.match_score, reverse=True)

    record_match_score_latency(time.perf_counter() - start)
    return matches
