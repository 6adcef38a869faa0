"""Job boards the N8N workflow scrapes, with per-site pacing and CSS selectors."""

from typing import List

from jobfinder.schemas import WebsiteConfig, WebsiteSelectors

JOB_WEBSITES: List[WebsiteConfig] = [
    WebsiteConfig(
        name="indeed",
        base_url="https://www.indeed.com",
        search_path="/jobs",
        rate_limit_ms=1000,
        selectors=WebsiteSelectors(
            job_card=".jobsearch-SerpJobCard",
            title=".jobTitle a",
            company=".companyName",
            location=".companyLocation",
            salary=".salary-snippet",
            description=".job-snippet",
        ),
    ),
    WebsiteConfig(
        name="linkedin",
        base_url="https://www.linkedin.com",
        search_path="/jobs/search",
        rate_limit_ms=2000,
        selectors=WebsiteSelectors(
            job_card=".job-search-card",
            title=".base-search-card__title",
            company=".base-search-card__subtitle",
            location=".job-search-card__location",
            description=".base-search-card__metadata",
        ),
    ),
    WebsiteConfig(
        name="glassdoor",
        base_url="https://www.glassdoor.com",
        search_path="/Job/jobs.htm",
        rate_limit_ms=1500,
        selectors=WebsiteSelectors(
            job_card=".react-job-listing",
            title=".jobTitle",
            company=".employerName",
            location=".location",
            salary=".salaryText",
        ),
    ),
]


def enabled_websites() -> List[WebsiteConfig]:
    return [site for site in JOB_WEBSITES if site.enabled]
