"""
Skin-colour face detection pipeline.

An image passes through colour conversion, skin masking, region extraction and
geometric filtering to give candidate face regions. Each candidate is reshaped
to the classifier's sample aspect ratio and, when a trained classifier is
supplied, given a face / non-face verdict.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable

import numpy as np

from facefinder.config import DEFAULT_CONFIG, DetectionConfig
from facefinder.core.aspect import adjust_aspect
from facefinder.core.classifier import FaceClassifier
from facefinder.core.color_space import convert_color_space, validate_pixels
from facefinder.core.errors import InvalidArgument
from facefinder.core.features import extract_sample
from facefinder.core.models import (
    BatchReport,
    DebugInfo,
    DetectionResult,
    FaceCandidate,
    Region,
)
from facefinder.core.region_filter import filter_regions, scale_regions
from facefinder.core.regions import extract_regions
from facefinder.core.skin_mask import build_strict_mask, relax_mask
from facefinder.utils.image_utils import resize_image

logger = logging.getLogger(__name__)


class FaceDetector:
    """Find possible face regions and optionally verify them."""

    def __init__(
        self,
        config: DetectionConfig | None = None,
        classifier: FaceClassifier | None = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self.classifier = classifier
        if classifier is not None and classifier.config.sample_size != self.config.sample_size:
            raise InvalidArgument(
                f"Classifier was trained on {classifier.config.sample_size} samples, "
                f"detector produces {self.config.sample_size}"
            )

    def get_possible_face_regions(self, image: np.ndarray) -> list[Region]:
        """Filtered, margin-expanded skin regions for an RGB image."""
        regions, _ = self._find_regions(image)
        return regions

    def _find_regions(self, image: np.ndarray) -> tuple[list[Region], DebugInfo]:
        image = validate_pixels(image)
        h, w = image.shape[:2]
        working, scale = resize_image(image, max_dimension=self.config.max_working_dimension)
        working_h, working_w = working.shape[:2]

        hue_saturation = convert_color_space(working, self.config)
        steps = [f"Converted {w}x{h} image to hue/saturation/texture"]
        if scale != 1.0:
            steps[0] += f" at working size {working_w}x{working_h}"

        strict_mask = build_strict_mask(hue_saturation, self.config)
        steps.append(f"Strict skin filter accepted {int(strict_mask.sum())} pixels")

        skin_mask = relax_mask(strict_mask, hue_saturation, self.config)
        steps.append(
            f"{self.config.relaxed_expansions} relaxed expansions grew mask to "
            f"{int(skin_mask.sum())} pixels"
        )

        raw_regions = scale_regions(extract_regions(skin_mask), scale, (w, h))
        steps.append(f"Extracted {len(raw_regions)} connected skin regions")

        regions = filter_regions(raw_regions, (w, h), self.config)
        steps.append(f"{len(regions)} regions left after aspect ratio and overlap filtering")

        debug_info = DebugInfo(
            image_width=w,
            image_height=h,
            working_width=working_w,
            working_height=working_h,
            skin_pixel_count=int(skin_mask.sum()),
            strict_skin_pixel_count=int(strict_mask.sum()),
            regions_before_filtering=len(raw_regions),
            regions_after_filtering=len(regions),
            processing_steps=steps,
            skin_mask=skin_mask,
        )
        return regions, debug_info

    def detect(self, image: np.ndarray, image_name: str = "unknown") -> DetectionResult:
        """
        Detect candidate faces in an image.

        Args:
            image: RGB image, uint8, shape (height, width, 3)
            image_name: Name of the image for reporting

        Returns:
            DetectionResult with one FaceCandidate per surviving region
        """
        start_time = time.time()

        regions, debug_info = self._find_regions(image)
        image_size = (debug_info.image_width, debug_info.image_height)

        candidates = []
        for region in regions:
            sample_region = adjust_aspect(region, image_size, self.config.sample_aspect_ratio)
            sample = extract_sample(image, sample_region, self.config.sample_size)
            candidate = FaceCandidate(region=region, sample_region=sample_region, sample=sample)

            if self.classifier is not None:
                candidate.decision_value = self.classifier.decision_value(sample)
                candidate.is_face = candidate.decision_value > 0
            candidates.append(candidate)

        if self.classifier is not None:
            face_count = sum(1 for c in candidates if c.is_face)
            debug_info.processing_steps.append(
                f"Classifier accepted {face_count} of {len(candidates)} candidates"
            )
        else:
            debug_info.processing_steps.append("No classifier supplied, candidates left unverified")

        processing_time = (time.time() - start_time) * 1000
        logger.info(
            f"{image_name}: {len(candidates)} candidate(s) in {processing_time:.0f} ms"
        )

        return DetectionResult(
            image_name=image_name,
            candidates=candidates,
            debug_info=debug_info,
            processing_time_ms=processing_time,
            config_used=self.config.to_dict(),
        )

    def detect_batch(
        self,
        images: Iterable[tuple[str, np.ndarray]],
        max_workers: int | None = None,
    ) -> BatchReport:
        """
        Run detection over many images in parallel.

        A failure on one image is logged and recorded in the report; it never
        stops the rest of the batch. Results keep the input order.
        """
        named_images = list(images)
        results: dict[int, DetectionResult] = {}
        failures: dict[int, tuple[str, str]] = {}

        with ThreadPoolExecutor(max_workers=max_workers or self.config.max_workers) as executor:
            future_to_index = {
                executor.submit(self.detect, image, name): index
                for index, (name, image) in enumerate(named_images)
            }

            for future in as_completed(future_to_index):
                index = future_to_index[future]
                name = named_images[index][0]
                try:
                    results[index] = future.result()
                except Exception as e:
                    logger.warning(f"Detection failed for {name}: {e}")
                    failures[index] = (name, str(e))

        ordered = [results[index] for index in sorted(results)]
        failed = [failures[index] for index in sorted(failures)]
        logger.info(
            f"Batch complete: {len(ordered)} succeeded, {len(failures)} failed"
        )
        return BatchReport.create(ordered, failed)
