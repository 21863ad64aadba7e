"""
Taxonomy Module

Static classification classes for narrative entities and the keyword /
pattern matching used to assign them. Classes are evaluated in declaration
order and the first matching class wins, so the order of
DEFAULT_TAXONOMY_CLASSES is part of the classification behaviour.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class TaxonomyClass:
    """
    A named category with keyword and regex rules.

    Attributes:
        id: Stable identifier used as the entity classification type
        name: Human readable name
        description: What the class covers
        color: Display colour (hex), optional
        keywords: Case-insensitive substrings that signal the class
        patterns: Regex bodies searched case-insensitively
        parent: Parent class id; informational only, never enforced
    """

    id: str
    name: str
    description: str
    color: Optional[str] = None
    keywords: Tuple[str, ...] = field(default_factory=tuple)
    patterns: Tuple[str, ...] = field(default_factory=tuple)
    parent: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "keywords": list(self.keywords),
            "patterns": list(self.patterns),
        }
        if self.parent is not None:
            data["parent"] = self.parent
        return data


@dataclass(frozen=True)
class TaxonomyMatch:
    """Result of classifying a text fragment."""

    taxonomy_class: TaxonomyClass
    confidence: float


DEFAULT_TAXONOMY_CLASSES: Tuple[TaxonomyClass, ...] = (
    TaxonomyClass(
        id="time-period",
        name="Time Period",
        description="Temporal boundaries and timeframes (quarters, years, deadlines)",
        color="#FFC0CB",
        keywords=("quarter", "year", "month", "week", "deadline", "timeline", "period",
                  "fiscal", "H1", "H2", "Q1", "Q2", "Q3", "Q4", "last quarter"),
        patterns=(r"\d{4}", r"Q[1-4]", r"H[12]", r"last \w+", r"next \w+", r"this \w+",
                  r"\w+ quarter"),
    ),
    TaxonomyClass(
        id="cycle-theme",
        name="Cycle Theme",
        description="Recurring themes and seasonal focuses across time periods",
        color="#000000",
        keywords=("growth", "expansion", "focus", "theme", "cycle", "seasonal", "efforts", "push"),
        patterns=(r"\w+ efforts", r"\w+ focus", r"\w+ theme", r"\w+ cycle"),
    ),
    TaxonomyClass(
        id="initiative",
        name="Initiative",
        description="Strategic programs, projects, and organized efforts",
        color="#ADD8E6",
        # the last keyword is matched literally, backslash included
        keywords=("improving", "initiative", "effort", "campaign", "program", "project",
                  "improving the \\w+"),
        patterns=(r"improving \w+", r"initiative to \w+", r"effort to \w+", r"program for \w+"),
    ),
    TaxonomyClass(
        id="product-capability",
        name="Product Capability",
        description="Features, tools, and functional capabilities of the product",
        color="#6A5ACD",
        keywords=("AI-powered", "insights", "feature", "capability", "functionality", "tool",
                  "platform"),
        patterns=(r"AI-powered \w+", r"\w+ feature", r"\w+ capability", r"\w+ functionality"),
    ),
    TaxonomyClass(
        id="release-launch",
        name="Release Launch",
        description="Product releases, deployments, and launch activities",
        color="#E6E6FA",
        keywords=("rollout", "launch", "release", "deployment", "go-live", "ship"),
        patterns=(r"rollout of \w+", r"launch of \w+", r"release of \w+", r"deployment of \w+"),
    ),
    TaxonomyClass(
        id="customer-segment",
        name="Customer Segment",
        description="Target audiences, customer groups, and market segments",
        color="#FFFF00",
        keywords=("customers", "users", "segment", "market", "audience", "B2B", "SaaS",
                  "enterprise", "mid-sized"),
        patterns=(r"customers in \w+", r"\w+ customers", r"\w+ users", r"\w+ segment"),
    ),
    TaxonomyClass(
        id="insight",
        name="Insight",
        description="Key learnings, discoveries, and understanding gained",
        color="#98FB98",
        keywords=("see value", "insight", "learning", "discovery", "understanding", "realize",
                  "quickly"),
        patterns=(r"see \w+ quickly", r"insight into \w+", r"learned that \w+", r"discovered \w+"),
    ),
    TaxonomyClass(
        id="goal",
        name="Goal",
        description="Objectives, targets, and desired outcomes to achieve",
        color="#00FF00",
        keywords=("reduce", "goal", "objective", "target", "aim", "resolve tickets", "time to"),
        patterns=(r"reduce \w+", r"goal to \w+", r"objective to \w+", r"aim to \w+",
                  r"reduce the time"),
    ),
    TaxonomyClass(
        id="target",
        name="Target",
        description="Specific measurable targets and metrics to hit",
        color="#FF7F50",
        keywords=("reduction", "churn", "target", "metric", "KPI", "achieve", "hit"),
        patterns=(r"reduction in \w+", r"target of \w+", r"achieve \w+", r"hit \w+"),
    ),
    TaxonomyClass(
        id="principle",
        name="Principle",
        description="Guiding values, beliefs, and methodological approaches",
        color="#FFFFE0",
        keywords=("iterate", "validate", "principle", "approach", "methodology", "belief",
                  "value"),
        patterns=(r"iterate and \w+", r"validate \w+", r"principle of \w+", r"approach to \w+"),
    ),
)


class Taxonomy:
    """
    Classifies short text fragments against an ordered list of classes.

    A class matches when any of its keywords is a case-insensitive
    substring of the fragment, or any of its patterns is found by a
    case-insensitive regex search. Classification takes the first matching
    class in declaration order; its confidence is the fraction of that
    class's keyword and pattern inventory that matched.

    Attributes:
        id: Taxonomy identifier
        name: Display name
        version: Taxonomy version
        description: Short description
        classes: Ordered, immutable tuple of TaxonomyClass

    Examples:
        >>> taxonomy = Taxonomy()
        >>> match = taxonomy.classify_text("Q2 2024")
        >>> match.taxonomy_class.id
        'time-period'
    """

    def __init__(
        self,
        classes: Optional[Sequence[TaxonomyClass]] = None,
        id: str = "dotwork-default",
        name: str = "Dotwork Default Taxonomy",
        version: str = "1.0.0",
        description: str = "Default 10-class taxonomy for narrative-to-ontology transformation"
    ):
        self.id = id
        self.name = name
        self.version = version
        self.description = description
        self.classes: Tuple[TaxonomyClass, ...] = tuple(
            DEFAULT_TAXONOMY_CLASSES if classes is None else classes
        )
        self.logger = logging.getLogger(__name__)

        # Compiled once; invalid pattern syntax fails here
        self._compiled: Dict[str, List[re.Pattern]] = {
            taxonomy_class.id: [re.compile(p, re.IGNORECASE) for p in taxonomy_class.patterns]
            for taxonomy_class in self.classes
        }

        self.logger.debug(f"Taxonomy '{self.id}' initialized with {len(self.classes)} classes")

    def get_class(self, class_id: str) -> Optional[TaxonomyClass]:
        """Look up a class by id."""
        return next((c for c in self.classes if c.id == class_id), None)

    def get_class_by_name(self, name: str) -> Optional[TaxonomyClass]:
        """Look up a class by display name, case-insensitively."""
        lowered = name.lower()
        return next((c for c in self.classes if c.name.lower() == lowered), None)

    def find_matching_classes(self, text: str) -> List[TaxonomyClass]:
        """
        Find every class matching the text, in declaration order.

        Args:
            text: Fragment to classify

        Returns:
            List of matching classes (possibly empty)
        """
        lower_text = text.lower()
        matches = []

        for taxonomy_class in self.classes:
            keyword_match = any(k.lower() in lower_text for k in taxonomy_class.keywords)
            if keyword_match or any(
                regex.search(text) for regex in self._compiled[taxonomy_class.id]
            ):
                matches.append(taxonomy_class)

        return matches

    def classify_text(self, text: str) -> Optional[TaxonomyMatch]:
        """
        Classify text using the first matching class.

        Args:
            text: Fragment to classify

        Returns:
            TaxonomyMatch, or None when no class matches
        """
        matches = self.find_matching_classes(text)
        if not matches:
            return None

        best_match = matches[0]
        return TaxonomyMatch(
            taxonomy_class=best_match,
            confidence=self._calculate_confidence(text, best_match)
        )

    def _calculate_confidence(self, text: str, taxonomy_class: TaxonomyClass) -> float:
        """Fraction of the class's keywords and patterns that match the text."""
        lower_text = text.lower()
        keyword_hits = sum(1 for k in taxonomy_class.keywords if k.lower() in lower_text)
        pattern_hits = sum(1 for regex in self._compiled[taxonomy_class.id] if regex.search(text))
        max_score = len(taxonomy_class.keywords) + len(taxonomy_class.patterns)

        return (keyword_hits + pattern_hits) / max_score if max_score > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "classes": [c.to_dict() for c in self.classes],
        }


# Module-level logger
logger = logging.getLogger(__name__)
