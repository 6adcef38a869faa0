"""
Job alert message templates (email subject, HTML, plain text, SMS).

Templates read JobMatch-shaped objects: job_title, company, location,
contract_type, salary, source_website, job_url.
"""

from dataclasses import dataclass
from html import escape
from typing import List, Optional, Sequence

NOT_SPECIFIED = "Not specified"
TEXT_DIVIDER = "-" * 50


@dataclass
class JobAlertContent:
    subject: str
    html: str
    text: str
    sms: str


def _job_word(count: int, capitalize: bool = False) -> str:
    word = "job" if count == 1 else "jobs"
    return word.capitalize() if capitalize else word


def _greeting(first_name: Optional[str]) -> str:
    return f"Hi {first_name}" if first_name else "Hello"


def render_subject(profile_name: str, total: int) -> str:
    return f"{total} New {_job_word(total, capitalize=True)} Found - {profile_name}"


def _job_html(job) -> str:
    url = escape(job.job_url, quote=True)
    salary = (
        f'<p style="margin: 5px 0;"><strong>Salary:</strong> {escape(job.salary)}</p>'
        if job.salary else ""
    )
    return f"""
      <div style="border: 1px solid #e0e0e0; border-radius: 8px; padding: 20px; margin: 15px 0;">
        <h3 style="margin: 0 0 10px 0;"><a href="{url}">{escape(job.job_title)}</a></h3>
        <p style="margin: 5px 0;"><strong>Company:</strong> {escape(job.company or NOT_SPECIFIED)}</p>
        <p style="margin: 5px 0;"><strong>Location:</strong> {escape(job.location or NOT_SPECIFIED)}</p>
        <p style="margin: 5px 0;"><strong>Contract Type:</strong> {escape(job.contract_type or NOT_SPECIFIED)}</p>
        {salary}
        <p style="margin: 5px 0; color: #7f8c8d;"><strong>Source:</strong> {escape(job.source_website)}</p>
        <p style="margin: 15px 0 0 0;"><a href="{url}">View Job Details</a></p>
      </div>"""


def render_html(jobs: Sequence, profile_name: str, first_name: Optional[str] = None) -> str:
    total = len(jobs)
    profile = escape(profile_name)
    jobs_html = "".join(_job_html(job) for job in jobs)
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Job Alert - {profile}</title>
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto;">
  <h1>Job Alert</h1>
  <p>{escape(_greeting(first_name))}! We found <strong>{total} new {_job_word(total)}</strong>
     matching your "<strong>{profile}</strong>" search criteria:</p>
  {jobs_html}
  <p style="color: #7f8c8d; font-size: 14px;">
    This alert was sent for your "{profile}" job search profile.
    To manage your job search preferences, visit your Job Finder dashboard.
  </p>
</body>
</html>"""


def _job_text(job) -> str:
    lines = [
        job.job_title,
        f"Company: {job.company or NOT_SPECIFIED}",
        f"Location: {job.location or NOT_SPECIFIED}",
        f"Contract Type: {job.contract_type or NOT_SPECIFIED}",
    ]
    if job.salary:
        lines.append(f"Salary: {job.salary}")
    lines.append(f"Source: {job.source_website}")
    lines.append(f"Apply: {job.job_url}")
    lines.append(TEXT_DIVIDER)
    return "\n".join(lines)


def render_text(jobs: Sequence, profile_name: str, first_name: Optional[str] = None) -> str:
    total = len(jobs)
    body = "\n\n".join(_job_text(job) for job in jobs)
    return (
        f"JOB ALERT - {profile_name.upper()}\n\n"
        f"{_greeting(first_name)}! We found {total} new {_job_word(total)} matching your "
        f'"{profile_name}" search criteria:\n\n'
        f"{body}\n\n"
        f'This alert was sent for your "{profile_name}" job search profile.\n'
        "To manage your job search preferences, visit your Job Finder dashboard.\n\n"
        "---\nJob Finder"
    )


def render_sms(jobs: Sequence, profile_name: str) -> str:
    total = len(jobs)
    if total == 1:
        job = jobs[0]
        return (
            f"Job Alert: {job.job_title} at {job.company or 'Unknown Company'} "
            f"({job.location or 'Location TBD'}) - {job.job_url}"
        )
    return f'Job Alert: {total} new {_job_word(total)} found for "{profile_name}". Check your email for details.'


def render_job_alert(jobs: List, profile_name: str, first_name: Optional[str] = None) -> JobAlertContent:
    return JobAlertContent(
        subject=render_subject(profile_name, len(jobs)),
        html=render_html(jobs, profile_name, first_name),
        text=render_text(jobs, profile_name, first_name),
        sms=render_sms(jobs, profile_name),
    )
