"""
Data models for face region detection results.
"""

from dataclasses import dataclass, field
from datetime import datetime

import numpy as np

from facefinder.core.errors import InvalidArgument


@dataclass(frozen=True)
class Region:
    """Axis-aligned rectangle in pixel coordinates (x = left, y = top)."""
    x: int
    y: int
    width: int
    height: int

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise InvalidArgument(
                f"Region dimensions must be positive, got {self.width}x{self.height}"
            )

    @classmethod
    def from_ltrb(cls, left: int, top: int, right: int, bottom: int) -> "Region":
        return cls(x=int(left), y=int(top), width=int(right - left), height=int(bottom - top))

    @property
    def left(self) -> int:
        return self.x

    @property
    def top(self) -> int:
        return self.y

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    @property
    def longest_side_multiple(self) -> float:
        return max(self.width, self.height) / min(self.width, self.height)

    def intersection_area(self, other: "Region") -> int:
        overlap_w = min(self.right, other.right) - max(self.left, other.left)
        overlap_h = min(self.bottom, other.bottom) - max(self.top, other.top)
        if overlap_w <= 0 or overlap_h <= 0:
            return 0
        return overlap_w * overlap_h

    def lies_within(self, image_size: tuple[int, int]) -> bool:
        width, height = image_size
        return self.left >= 0 and self.top >= 0 and self.right <= width and self.bottom <= height

    def to_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }


@dataclass(frozen=True, eq=False)
class IRgByGrid:
    """Log-opponent colour channels, one value per pixel."""
    rg: np.ndarray
    by: np.ndarray
    i: np.ndarray

    @property
    def shape(self) -> tuple[int, int]:
        return self.i.shape


@dataclass(frozen=True, eq=False)
class HueSaturationGrid:
    """Per-pixel hue (degrees), saturation and texture amplitude."""
    hue: np.ndarray
    saturation: np.ndarray
    texture_amplitude: np.ndarray

    @property
    def shape(self) -> tuple[int, int]:
        return self.hue.shape


@dataclass
class FaceCandidate:
    """A possible face found by the skin-colour pass."""
    region: Region  # Filtered, margin-expanded skin region
    sample_region: Region  # Region reshaped to the sample aspect ratio
    is_face: bool | None = None  # None when no classifier was supplied
    decision_value: float | None = None
    sample: np.ndarray | None = None  # Grayscale crop, not serialized

    def to_dict(self) -> dict:
        return {
            "region": self.region.to_dict(),
            "sample_region": self.sample_region.to_dict(),
            "is_face": self.is_face,
            "decision_value": (
                round(self.decision_value, 4) if self.decision_value is not None else None
            ),
        }


@dataclass
class DebugInfo:
    """Debug information for analysis and tuning."""
    image_width: int
    image_height: int
    working_width: int  # Size of the copy masking ran on
    working_height: int
    skin_pixel_count: int
    strict_skin_pixel_count: int
    regions_before_filtering: int
    regions_after_filtering: int
    processing_steps: list[str] = field(default_factory=list)
    # Not serialized
    skin_mask: np.ndarray | None = None

    @property
    def skin_coverage_percent(self) -> float:
        total = self.working_width * self.working_height
        return (self.skin_pixel_count / total * 100) if total > 0 else 0.0

    def to_dict(self) -> dict:
        return {
            "image_width": self.image_width,
            "image_height": self.image_height,
            "working_width": self.working_width,
            "working_height": self.working_height,
            "skin_pixel_count": self.skin_pixel_count,
            "strict_skin_pixel_count": self.strict_skin_pixel_count,
            "skin_coverage_percent": round(self.skin_coverage_percent, 2),
            "regions_before_filtering": self.regions_before_filtering,
            "regions_after_filtering": self.regions_after_filtering,
            "processing_steps": self.processing_steps,
        }


@dataclass
class DetectionResult:
    """Complete detection result for a single image."""
    image_name: str
    candidates: list[FaceCandidate]
    debug_info: DebugInfo
    processing_time_ms: float
    config_used: dict

    @property
    def candidate_count(self) -> int:
        return len(self.candidates)

    @property
    def faces(self) -> list[FaceCandidate]:
        return [c for c in self.candidates if c.is_face]

    @property
    def face_count(self) -> int:
        return len(self.faces)

    def to_dict(self) -> dict:
        return {
            "image_name": self.image_name,
            "candidate_count": self.candidate_count,
            "face_count": self.face_count,
            "candidates": [c.to_dict() for c in self.candidates],
            "debug_info": self.debug_info.to_dict(),
            "processing_time_ms": round(self.processing_time_ms, 2),
            "config_used": self.config_used,
        }


@dataclass
class BatchReport:
    """Combined report for multiple images."""
    timestamp: str
    total_images: int
    successful_images: int
    failed_images: int
    results: list[DetectionResult]
    failures: list[tuple[str, str]]  # (image name, error message) in input order
    summary: dict

    @classmethod
    def create(
        cls, results: list[DetectionResult], failures: list[tuple[str, str]] | None = None
    ) -> "BatchReport":
        failures = list(failures or [])
        total_candidates = sum(r.candidate_count for r in results)
        total_faces = sum(r.face_count for r in results)

        summary = {
            "total_candidates": total_candidates,
            "total_faces": total_faces,
            "average_candidates_per_image": round(total_candidates / len(results), 2) if results else 0,
        }

        return cls(
            timestamp=datetime.now().isoformat(),
            total_images=len(results) + len(failures),
            successful_images=len(results),
            failed_images=len(failures),
            results=results,
            failures=failures,
            summary=summary,
        )

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "total_images": self.total_images,
            "successful_images": self.successful_images,
            "failed_images": self.failed_images,
            "failures": [{"image_name": name, "error": error} for name, error in self.failures],
            "summary": self.summary,
            "results": [r.to_dict() for r in self.results],
        }
