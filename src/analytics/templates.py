"""Domain keyword templates for the domain-specific pattern detector.

Static data only. A milestone matches a template when its case-folded name
and description contain any indicator substring. Add templates here (or
pass a custom tuple to the engine) without touching detector logic.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DomainPatternTemplate:
    """Immutable keyword template with its per-milestone base revenue."""

    key: str
    name: str
    indicators: tuple[str, ...]
    base_revenue: float


DOMAIN_PATTERN_TEMPLATES: tuple[DomainPatternTemplate, ...] = (
    DomainPatternTemplate(
        key="privacy-momentum",
        name="Privacy-First Development Momentum",
        indicators=("privacy", "gdpr", "ferpa", "encryption", "audit"),
        base_revenue=50000.0,
    ),
    DomainPatternTemplate(
        key="ai-philosophy-alignment",
        name="AI Philosophy Implementation Excellence",
        indicators=("bounded", "enhancement", "ai", "reflection", "independence"),
        base_revenue=75000.0,
    ),
    DomainPatternTemplate(
        key="architecture-scaling",
        name="Microservices Architecture Scaling Pattern",
        indicators=("microservices", "repository", "event", "decoupling"),
        base_revenue=25000.0,
    ),
    DomainPatternTemplate(
        key="innovation",
        name="Technology Innovation Pattern",
        indicators=("educational", "writing", "transparency", "trust"),
        base_revenue=40000.0,
    ),
)
