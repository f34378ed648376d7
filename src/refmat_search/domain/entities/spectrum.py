"""
Domain Entities: SpectrumDataset, SpectrumPoint, Spectrum

Spectral datasets (CSV attachments) published for an analyte.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SpectrumDataset:
    """A downloadable spectrum linked from a repository feed entry."""

    title: str
    href: str

    @property
    def kind(self) -> str:
        """Plot type: "nmr" for NMR spectra, "mass" otherwise."""
        return "nmr" if "nmr" in self.title.lower() else "mass"


@dataclass(frozen=True)
class SpectrumPoint:
    x: float  # m/z, or chemical shift for NMR
    intensity: float


@dataclass
class Spectrum:
    """Parsed spectrum: data points plus the key/value header rows."""

    dataset: SpectrumDataset
    points: list[SpectrumPoint] = field(default_factory=list)
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.points

    @property
    def max_intensity(self) -> float | None:
        if not self.points:
            return None
        return max(p.intensity for p in self.points)

    @property
    def x_range(self) -> tuple[float, float] | None:
        if not self.points:
            return None
        xs = [p.x for p in self.points]
        return min(xs), max(xs)
