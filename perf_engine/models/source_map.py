"""
Ordered lead-source maps.

Per-source values travel through the engine in three shapes:

- LeadMix: source -> lead count for one rep, keys sorted by source name
- SourceWeights: source -> expected units per lead, keys sorted by source name
- LeadAsks: source -> extra leads needed, kept in ranking order

Key order is part of the contract: iteration over LeadMix and SourceWeights is
alphabetical so floating point sums are accumulated in the same order on every
call, and SourceWeights.ranked() defines the "top N sources" selection as
weight descending, then source name ascending.

All three are pydantic RootModels and serialize to plain JSON objects.

Usage:
    weights = SourceWeights({'referral': 0.3, 'internet': 0.1, 'phone': 0.3})
    weights.ranked(2)
    # [('phone', 0.3), ('referral', 0.3)]
"""

from typing import Annotated, Dict, Iterator, List, Tuple

from pydantic import Field, RootModel, field_validator


NonNegativeCount = Annotated[int, Field(ge=0)]
NonNegativeWeight = Annotated[float, Field(ge=0.0)]


class _SourceMap:
    """Read-only mapping helpers shared by the source map models."""

    def __iter__(self) -> Iterator[str]:  # type: ignore[override]
        return iter(self.root)

    def __getitem__(self, source: str):
        return self.root[source]

    def __contains__(self, source: object) -> bool:
        return source in self.root

    def __len__(self) -> int:
        return len(self.root)

    def get(self, source: str, default=None):
        return self.root.get(source, default)

    def items(self):
        return self.root.items()

    def keys(self):
        return self.root.keys()

    def values(self):
        return self.root.values()

    def to_dict(self) -> Dict:
        return dict(self.root)


class LeadMix(_SourceMap, RootModel[Dict[str, NonNegativeCount]]):
    """Lead counts per source for a single rep."""

    root: Dict[str, NonNegativeCount] = Field(default_factory=dict)

    @field_validator('root')
    @classmethod
    def _sort_sources(cls, value: Dict[str, int]) -> Dict[str, int]:
        return dict(sorted(value.items()))

    def total(self) -> int:
        """Total leads across all sources."""
        return sum(self.root.values())


class SourceWeights(_SourceMap, RootModel[Dict[str, NonNegativeWeight]]):
    """Estimated expected units per lead for each source."""

    root: Dict[str, NonNegativeWeight] = Field(default_factory=dict)

    @field_validator('root')
    @classmethod
    def _sort_sources(cls, value: Dict[str, float]) -> Dict[str, float]:
        return dict(sorted(value.items()))

    def ranked(self, n: int) -> List[Tuple[str, float]]:
        """
        Return the top-n sources by weight.

        Ties on weight are broken by source name ascending, so the selection
        does not depend on the order sources were first observed.

        Args:
            n: Maximum number of sources to return.

        Returns:
            List of (source, weight) pairs, highest weight first.
        """
        ordered = sorted(self.root.items(), key=lambda item: (-item[1], item[0]))
        return ordered[:max(0, n)]


class LeadAsks(_SourceMap, RootModel[Dict[str, NonNegativeCount]]):
    """Additional leads needed per source, in ranking order."""

    root: Dict[str, NonNegativeCount] = Field(default_factory=dict)


__all__ = ['LeadMix', 'SourceWeights', 'LeadAsks']
