"""
Domain services.

- matching: rule-based preference filters and 0-100 scoring
- duplicates: hash, fuzzy-hash and similarity duplicate detection
- job_matches: match storage, queries and batch processing
- preferences: preference profile CRUD and validation
- users: registration, login and account management
- notifications / templates / alerts: Brevo delivery of job alerts
- retention: archiving and purging of old matches
- rate_limit: Redis fixed-window limiters
"""
