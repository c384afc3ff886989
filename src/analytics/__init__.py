"""Strategic analytics (goal health, pattern recognition, orchestration).

Scores business goals against the technical milestones that serve them,
detects recurring execution patterns, and bundles results for the API.

Deterministic -- no LLM calls.
"""
