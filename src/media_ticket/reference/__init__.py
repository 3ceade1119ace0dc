"""Static WCAG, Axe-core and ARIA APG reference tables."""

from .apg_patterns import get_apg_entry, get_apg_url, parse_apg_patterns
from .axe_rules import get_axe_rule, get_axe_rule_url
from .wcag import get_wcag_criterion, get_wcag_link, parse_wcag_standards

__all__ = [
    "get_apg_entry",
    "get_apg_url",
    "parse_apg_patterns",
    "get_axe_rule",
    "get_axe_rule_url",
    "get_wcag_criterion",
    "get_wcag_link",
    "parse_wcag_standards",
]
