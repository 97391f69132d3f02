from dataclasses import dataclass, field

import numpy as np


@dataclass(frozen=True)
class EdgePoint:
    """Pixel coordinate in original image space."""

    x: float
    y: float

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y}


@dataclass
class PeakingResult:
    width: int
    height: int
    # One list per connected edge, in discovery order
    edges: list[list[EdgePoint]] = field(default_factory=list)

    @property
    def total_points(self) -> int:
        return sum(len(edge) for edge in self.edges)

    def to_dict(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "edges": [[p.to_dict() for p in edge] for edge in self.edges],
        }


@dataclass
class RgbHistogram:
    r: np.ndarray
    g: np.ndarray
    b: np.ndarray

    type_name = "RGB"

    def to_dict(self) -> dict:
        return {
            "type": self.type_name,
            "r": self.r.tolist(),
            "g": self.g.tolist(),
            "b": self.b.tolist(),
        }


@dataclass
class LuminanceHistogram:
    y: np.ndarray

    type_name = "Luminance"

    def to_dict(self) -> dict:
        return {"type": self.type_name, "y": self.y.tolist()}


@dataclass
class HistogramResult:
    width: int
    height: int
    histogram_type: str
    data: RgbHistogram | LuminanceHistogram

    def to_dict(self) -> dict:
        return {
            "width": self.width,
            "height": self.height,
            "histogram_type": self.histogram_type,
            "data": self.data.to_dict(),
        }
