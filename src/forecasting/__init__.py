"""Multi-scenario forecasting and strategy gap ranking.

Deterministic -- no LLM calls.
"""
