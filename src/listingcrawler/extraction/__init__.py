"""DOM extraction: field strategy tables, extractors and link harvesting."""

from .extractors import DetailExtractor, InlineBatch, InlineCardExtractor, build_record
from .harvest import LinkHarvester, canonical_url, select_cards
from .strategies import (
    ExtractionProfile,
    FieldRule,
    ListRule,
    Strategy,
    attr,
    labelled,
    stat_with_label,
    text,
)

__all__ = [
    "DetailExtractor",
    "ExtractionProfile",
    "FieldRule",
    "InlineBatch",
    "InlineCardExtractor",
    "LinkHarvester",
    "ListRule",
    "Strategy",
    "attr",
    "build_record",
    "canonical_url",
    "labelled",
    "select_cards",
    "stat_with_label",
    "text",
]
