"""Text cleaning (rewrite rules + line classifier)."""

from .classify import LineVerdict, classify, explain
from .filter import ArtifactFilter, clean
from .rules import RewriteRule, RuleHit, Ruleset, default_ruleset, load_ruleset, resolve_ruleset

__all__ = [
    "ArtifactFilter",
    "LineVerdict",
    "RewriteRule",
    "RuleHit",
    "Ruleset",
    "classify",
    "clean",
    "default_ruleset",
    "explain",
    "load_ruleset",
    "resolve_ruleset",
]
