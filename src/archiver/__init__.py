"""Repository archiving step for GitHub issue-driven automation.

This package implements a single CI workflow step that:
- Reads the step inputs (actor, credentials, issue body, issue, org, repo)
- Archives the repository named by the last word of the issue body
- Posts the outcome back to the triggering issue as a comment

Both GitHub interactions go through an async client with transient retry
and one-shot rate limit handling.
"""
