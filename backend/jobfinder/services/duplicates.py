"""
Duplicate Detection Service - Keeps the Same Posting From Being Stored Twice

Detection stages (first hit wins):
    1. Exact URL match                      confidence 1.00
    2. Primary content hash match           confidence 0.95
    3. Fuzzy hash variant match             confidence 0.90
    4. Similar-job search + weighted score  confidence 0.85

Hashes:
    primary: sha256(normalized url | normalized title | normalized company)
    fuzzy:   primary, url|title (no company), and url|title|company with
             seniority words stripped from the title

Similar-job search compares titles and companies with a Levenshtein ratio
(rapidfuzz) over the most recent stored matches of the same source website.
"""

import hashlib
import logging
import re
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, Iterable, List, NamedTuple, Optional, Union
from urllib.parse import urlparse

from rapidfuzz import fuzz
from sqlalchemy import delete, exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from jobfinder.database import utcnow
from jobfinder.middleware.metrics import record_duplicate
from jobfinder.models import ApplicationStatus, JobMatch, JobPreference
from jobfinder.schemas import DuplicateDetectionOptions, JobData

logger = logging.getLogger(__name__)

BATCH_CHUNK_SIZE = 50
SIMILAR_CANDIDATE_SCAN = 500
SIMILAR_RESULT_LIMIT = 10
HIGH_SIMILARITY = 0.9

CONFIDENCE_EXACT_URL = 1.0
CONFIDENCE_HASH = 0.95
CONFIDENCE_FUZZY_HASH = 0.9
CONFIDENCE_SIMILAR = 0.85

_COMPANY_SUFFIXES = re.compile(r"\b(inc|ltd|llc|corp|corporation|company|co)\b\.?")
_SENIORITY_WORDS = re.compile(r"\b(senior|junior|lead|principal|staff)\b")
_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


class JobFingerprint(NamedTuple):
    """The fields duplicate checks compare, whichever shape the job came in."""

    title: str
    company: Optional[str]
    location: Optional[str]
    url: str


@dataclass
class DuplicateCheckResult:
    is_duplicate: bool
    confidence: float
    existing_job: Optional[JobMatch] = None
    similar_jobs: List[JobMatch] = field(default_factory=list)
    method: Optional[str] = None


def fingerprint(job: Union[JobData, JobMatch, JobFingerprint]) -> JobFingerprint:
    if isinstance(job, JobFingerprint):
        return job
    if isinstance(job, JobMatch):
        return JobFingerprint(job.job_title, job.company, job.location, job.job_url)
    return JobFingerprint(job.title, job.company, job.location, job.url)


# ==================== Normalization & Hashing ====================

def _collapse(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def normalize_title(title: str) -> str:
    return _collapse(_NON_WORD.sub("", title.lower()))


def normalize_company(company: Optional[str]) -> str:
    if not company:
        return ""
    text = _COMPANY_SUFFIXES.sub("", company.lower())
    return _collapse(_NON_WORD.sub("", text))


def normalize_url(url: str) -> str:
    """scheme://host/path, lowercased, without query string or fragment."""
    try:
        parsed = urlparse(url)
    except ValueError:
        parsed = None

    if parsed is not None and parsed.scheme and parsed.netloc:
        return f"{parsed.scheme}://{parsed.netloc}{parsed.path}".lower()
    return re.sub(r"[?#].*$", "", url.lower())


def _sha256(*parts: str) -> str:
    return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()


def generate_job_hash(url: str, title: str, company: Optional[str] = None) -> str:
    return _sha256(normalize_url(url), normalize_title(title), normalize_company(company))


def generate_fuzzy_hashes(url: str, title: str, company: Optional[str] = None) -> List[str]:
    normalized_url = normalize_url(url)
    normalized_title = normalize_title(title)
    normalized_company = normalize_company(company)

    hashes = [
        _sha256(normalized_url, normalized_title, normalized_company),
        _sha256(normalized_url, normalized_title),
    ]

    stripped_title = _collapse(_SENIORITY_WORDS.sub("", normalized_title))
    if stripped_title != normalized_title:
        hashes.append(_sha256(normalized_url, stripped_title, normalized_company))

    return list(dict.fromkeys(hashes))


# ==================== Similarity ====================

def string_similarity(a: Optional[str], b: Optional[str]) -> float:
    """Jaccard similarity over lowercase whitespace tokens."""
    tokens_a = set((a or "").lower().split())
    tokens_b = set((b or "").lower().split())
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


def url_similarity(url_a: str, url_b: str) -> float:
    """1.0 when both URLs share a hostname."""
    try:
        host_a = urlparse(url_a).hostname
        host_b = urlparse(url_b).hostname
    except ValueError:
        return 0.0
    if not host_a or not host_b:
        return 0.0
    return 1.0 if host_a == host_b else 0.0


def calculate_job_similarity(job_a, job_b) -> float:
    """
    Weighted similarity of two jobs (0-1).

    Weights: title 0.4, company 0.3, location 0.2, URL domain 0.1. Company
    and location only count when both jobs have them; the result is divided
    by the weights actually used.
    """
    a, b = fingerprint(job_a), fingerprint(job_b)

    score = string_similarity(a.title, b.title) * 0.4
    weights = 0.4

    if a.company and b.company:
        score += string_similarity(a.company, b.company) * 0.3
        weights += 0.3

    if a.location and b.location:
        score += string_similarity(a.location, b.location) * 0.2
        weights += 0.2

    score += url_similarity(a.url, b.url) * 0.1
    weights += 0.1

    return score / weights


def _ratio(a: Optional[str], b: Optional[str]) -> float:
    if not a or not b:
        return 0.0
    return fuzz.ratio(a.lower(), b.lower()) / 100.0


def _hash_args(fp: JobFingerprint):
    return fp.url, fp.title, fp.company


def are_duplicates(job_a, job_b) -> bool:
    a, b = fingerprint(job_a), fingerprint(job_b)
    if normalize_url(a.url) == normalize_url(b.url):
        return True
    if set(generate_fuzzy_hashes(*_hash_args(a))) & set(generate_fuzzy_hashes(*_hash_args(b))):
        return True
    return calculate_job_similarity(a, b) > HIGH_SIMILARITY


def select_job_to_keep(jobs: List[JobMatch]) -> JobMatch:
    """
    Pick the match that survives consolidation.

    Priority: progressed application status, then alert already sent, then
    most recently found. Equal found_at falls back to the lowest id.
    """
    ordered = sorted(sorted(jobs, key=lambda j: j.id), key=lambda j: j.found_at, reverse=True)

    for job in ordered:
        if job.application_status != ApplicationStatus.NOT_APPLIED.value:
            return job
    for job in ordered:
        if job.alert_sent:
            return job
    return ordered[0]


def group_duplicate_matches(matches: Iterable[JobMatch]) -> List[List[JobMatch]]:
    """
    Split matches into groups of mutual duplicates (connected components).

    Groups keep the input order; singletons are included.
    """
    matches = list(matches)
    parent = list(range(len(matches)))

    def find(i: int) -> int:
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    prints = [fingerprint(m) for m in matches]
    for i in range(len(matches)):
        for j in range(i + 1, len(matches)):
            if find(i) == find(j):
                continue
            if matches[i].job_hash == matches[j].job_hash or are_duplicates(prints[i], prints[j]):
                parent[find(j)] = find(i)

    groups: Dict[int, List[JobMatch]] = {}
    for i, match in enumerate(matches):
        groups.setdefault(find(i), []).append(match)
    return list(groups.values())


def owned_preference_ids(user_id: str):
    return select(JobPreference.id).where(JobPreference.user_id == user_id)


# ==================== Service ====================

class DuplicateDetectionService:
    """Duplicate checks and consolidation against stored job matches."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def filter_owned(self, matches: List[JobMatch], user_id: str) -> List[JobMatch]:
        """Keep only matches that belong to one of the user's profiles."""
        preference_ids = {m.preference_id for m in matches}
        if not preference_ids:
            return []
        result = await self.db.execute(
            owned_preference_ids(user_id).where(JobPreference.id.in_(preference_ids))
        )
        owned = set(result.scalars().all())
        return [m for m in matches if m.preference_id in owned]

    async def find_by_url(self, url: str) -> Optional[JobMatch]:
        result = await self.db.execute(
            select(JobMatch).where(JobMatch.job_url == url).order_by(JobMatch.found_at.desc()).limit(1)
        )
        return result.scalars().first()

    async def find_by_hashes(self, hashes: List[str]) -> Optional[JobMatch]:
        result = await self.db.execute(
            select(JobMatch).where(JobMatch.job_hash.in_(hashes)).order_by(JobMatch.found_at.desc()).limit(1)
        )
        return result.scalars().first()

    async def find_similar_jobs(
        self,
        job: JobData,
        threshold: float = 0.85,
        across_websites: bool = False,
        limit: int = SIMILAR_RESULT_LIMIT,
    ) -> List[JobMatch]:
        query = select(JobMatch)
        if not across_websites:
            query = query.where(JobMatch.source_website == job.source_website)
        query = query.order_by(JobMatch.found_at.desc()).limit(SIMILAR_CANDIDATE_SCAN)

        result = await self.db.execute(query)
        scored = []
        for candidate in result.scalars().all():
            title_ratio = _ratio(job.title, candidate.job_title)
            company_ratio = _ratio(job.company, candidate.company)
            if title_ratio > threshold or company_ratio > threshold:
                scored.append((title_ratio, company_ratio, candidate))

        scored.sort(key=lambda item: (item[0], item[1]), reverse=True)
        return [candidate for _, _, candidate in scored[:limit]]

    async def detect_duplicates(
        self,
        job: JobData,
        options: Optional[DuplicateDetectionOptions] = None,
    ) -> DuplicateCheckResult:
        options = options or DuplicateDetectionOptions()

        if options.check_exact_duplicates:
            existing = await self.find_by_url(job.url)
            if existing:
                record_duplicate("url")
                return DuplicateCheckResult(True, CONFIDENCE_EXACT_URL, existing, method="url")

        job_hash = generate_job_hash(job.url, job.title, job.company)
        existing = await self.find_by_hashes([job_hash])
        if existing:
            record_duplicate("hash")
            return DuplicateCheckResult(True, CONFIDENCE_HASH, existing, method="hash")

        existing = await self.find_by_hashes(generate_fuzzy_hashes(job.url, job.title, job.company))
        if existing:
            record_duplicate("fuzzy_hash")
            return DuplicateCheckResult(True, CONFIDENCE_FUZZY_HASH, existing, method="fuzzy_hash")

        similar_jobs: List[JobMatch] = []
        if options.check_similar_jobs:
            try:
                similar_jobs = await self.find_similar_jobs(
                    job, options.similarity_threshold, options.check_across_websites
                )
            except Exception as e:
                logger.warning(f"Similar job search failed for {job.url}: {e}")
                similar_jobs = []

            close = [s for s in similar_jobs if calculate_job_similarity(job, s) > HIGH_SIMILARITY]
            if close:
                record_duplicate("similarity")
                return DuplicateCheckResult(
                    True, CONFIDENCE_SIMILAR, close[0], similar_jobs, method="similarity"
                )

        return DuplicateCheckResult(False, 0.0, similar_jobs=similar_jobs)

    async def detect_batch_duplicates(
        self,
        jobs: List[JobData],
        options: Optional[DuplicateDetectionOptions] = None,
    ) -> Dict[str, DuplicateCheckResult]:
        """Per-URL results, processed in chunks of 50."""
        results: Dict[str, DuplicateCheckResult] = {}
        for start in range(0, len(jobs), BATCH_CHUNK_SIZE):
            for job in jobs[start:start + BATCH_CHUNK_SIZE]:
                results[job.url] = await self.detect_duplicates(job, options)
        return results

    async def consolidate_duplicates_for_preference(self, preference_id: str) -> int:
        result = await self.db.execute(
            select(JobMatch)
            .where(JobMatch.preference_id == preference_id)
            .order_by(JobMatch.found_at.desc(), JobMatch.id)
        )
        matches = result.scalars().all()

        removed_ids: List[str] = []
        for group in group_duplicate_matches(matches):
            if len(group) < 2:
                continue

            keep = select_job_to_keep(group)
            removed = [m for m in group if m.id != keep.id]

            keep.alert_sent = any(m.alert_sent for m in group)
            if keep.application_status == ApplicationStatus.NOT_APPLIED.value:
                for m in removed:
                    if m.application_status != ApplicationStatus.NOT_APPLIED.value:
                        keep.application_status = m.application_status
                        break

            removed_ids.extend(m.id for m in removed)

        if removed_ids:
            await self.db.execute(delete(JobMatch).where(JobMatch.id.in_(removed_ids)))
            await self.db.commit()
            logger.info(f"Consolidated {len(removed_ids)} duplicate matches for preference {preference_id}")

        return len(removed_ids)

    async def cleanup_duplicates(self, days_old: int = 30, user_id: Optional[str] = None) -> int:
        """
        Drop stale not_applied matches that a newer match in the same profile repeats.

        With user_id set only that user's profiles are touched.
        """
        cutoff = utcnow() - timedelta(days=days_old)
        newer = aliased(JobMatch)

        query = select(JobMatch.id).where(
            JobMatch.found_at < cutoff,
            JobMatch.application_status == ApplicationStatus.NOT_APPLIED.value,
            exists().where(
                newer.preference_id == JobMatch.preference_id,
                newer.id != JobMatch.id,
                newer.found_at > JobMatch.found_at,
                or_(newer.job_url == JobMatch.job_url, newer.job_hash == JobMatch.job_hash),
            ),
        )
        if user_id is not None:
            query = query.where(JobMatch.preference_id.in_(owned_preference_ids(user_id)))

        result = await self.db.execute(query)
        stale_ids = [row[0] for row in result.all()]

        if stale_ids:
            await self.db.execute(delete(JobMatch).where(JobMatch.id.in_(stale_ids)))
            await self.db.commit()
            logger.info(f"Removed {len(stale_ids)} stale duplicate matches older than {days_old} days")

        return len(stale_ids)

    async def get_duplicate_statistics(self, user_id: str) -> dict:
        result = await self.db.execute(
            select(JobMatch)
            .join(JobPreference, JobPreference.id == JobMatch.preference_id)
            .where(JobPreference.user_id == user_id)
            .order_by(JobMatch.found_at.desc(), JobMatch.id)
        )

        by_preference: Dict[str, List[JobMatch]] = {}
        for match in result.scalars().all():
            by_preference.setdefault(match.preference_id, []).append(match)

        duplicates: List[JobMatch] = []
        for matches in by_preference.values():
            for group in group_duplicate_matches(matches):
                if len(group) > 1:
                    duplicates.extend(group)

        by_website: Dict[str, int] = {}
        for match in duplicates:
            by_website[match.source_website] = by_website.get(match.source_website, 0) + 1

        duplicates.sort(key=lambda m: m.found_at, reverse=True)
        return {
            "total_duplicates": len(duplicates),
            "duplicates_by_website": [
                {"source_website": website, "count": count}
                for website, count in sorted(by_website.items(), key=lambda item: -item[1])
            ],
            "recent_duplicates": duplicates[:10],
        }
