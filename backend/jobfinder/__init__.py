"""Job Finder backend: preference profiles, duplicate-aware job matching and alerts."""
