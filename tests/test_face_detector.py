import time

import numpy as np
import pytest

from facefinder.config import DetectionConfig
from facefinder.core.classifier import FaceClassifier
from facefinder.core.errors import InvalidArgument
from facefinder.core.face_detector import FaceDetector
from tests.helpers import SKIN_RGB, make_image, paint


def test_uniform_gray_image_has_no_regions():
    gray = make_image(4, 4, (128, 128, 128))
    assert FaceDetector().get_possible_face_regions(gray) == []


def test_background_only_image_has_no_candidates():
    result = FaceDetector().detect(make_image(80, 60), "blank")

    assert result.candidates == []
    assert result.debug_info.skin_pixel_count == 0


def test_skin_patch_becomes_one_expanded_region(skin_patch_image):
    regions = FaceDetector().get_possible_face_regions(skin_patch_image)

    assert len(regions) == 1
    region = regions[0]
    # Patch is 50x60 at (40, 30); 10% margin adds about 5 and 6 pixels
    assert abs(region.left - 38) <= 3
    assert abs(region.top - 27) <= 3
    assert abs(region.width - 55) <= 4
    assert abs(region.height - 66) <= 4


def test_detect_without_classifier_leaves_verdict_empty(skin_patch_image):
    config = DetectionConfig()
    result = FaceDetector(config).detect(skin_patch_image, "patch")

    assert result.candidate_count == 1
    candidate = result.candidates[0]
    assert candidate.is_face is None
    assert candidate.sample.shape == (config.sample_height, config.sample_width)
    assert candidate.sample_region.lies_within((120, 120))
    assert abs(candidate.sample_region.width - candidate.sample_region.height) <= 1
    assert result.face_count == 0
    assert result.to_dict()["candidates"][0]["is_face"] is None


def test_detect_with_classifier_gives_verdicts(skin_patch_image, labelled_crops, small_training_config):
    classifier = FaceClassifier.train(labelled_crops, small_training_config)
    result = FaceDetector(small_training_config, classifier).detect(skin_patch_image)

    candidate = result.candidates[0]
    assert isinstance(candidate.is_face, bool)
    assert candidate.is_face == (candidate.decision_value > 0)


def test_detection_is_deterministic(skin_patch_image):
    detector = FaceDetector()
    first = detector.get_possible_face_regions(skin_patch_image)
    second = detector.get_possible_face_regions(skin_patch_image.copy())
    assert first == second


def test_two_separate_patches_give_two_regions():
    image = make_image(200, 120)
    paint(image, 10, 20, 50, 60, SKIN_RGB)
    paint(image, 120, 30, 50, 50, SKIN_RGB)

    regions = FaceDetector().get_possible_face_regions(image)

    assert len(regions) == 2
    assert regions[0].left < regions[1].left


def test_detect_rejects_empty_image():
    with pytest.raises(InvalidArgument):
        FaceDetector().detect(np.zeros((0, 0, 3), dtype=np.uint8))


def test_classifier_sample_size_must_match(labelled_crops, small_training_config):
    classifier = FaceClassifier.train(labelled_crops, small_training_config)
    with pytest.raises(InvalidArgument):
        FaceDetector(DetectionConfig(sample_width=32, sample_height=32), classifier)


def test_batch_isolates_failures(skin_patch_image):
    images = [
        ("patch.png", skin_patch_image),
        ("broken.png", np.zeros((0, 0, 3), dtype=np.uint8)),
        ("blank.png", make_image(40, 40)),
    ]

    report = FaceDetector().detect_batch(images, max_workers=2)

    assert report.total_images == 3
    assert report.successful_images == 2
    assert report.failed_images == 1
    assert [name for name, _ in report.failures] == ["broken.png"]
    assert [r.image_name for r in report.results] == ["patch.png", "blank.png"]
    assert report.summary["total_candidates"] == 1
    assert report.to_dict()["failed_images"] == 1


def test_failures_with_repeated_names_are_all_counted(skin_patch_image):
    empty = np.zeros((0, 0, 3), dtype=np.uint8)
    images = [("a/img.png", empty), ("a/img.png", empty), ("patch.png", skin_patch_image)]

    report = FaceDetector().detect_batch(images, max_workers=2)

    assert report.total_images == 3
    assert report.failed_images == 2
    assert report.successful_images == 1
    assert [name for name, _ in report.failures] == ["a/img.png", "a/img.png"]
    assert len(report.to_dict()["failures"]) == 2


def test_small_image_is_processed_at_full_size(skin_patch_image):
    result = FaceDetector().detect(skin_patch_image)

    info = result.debug_info
    assert (info.working_width, info.working_height) == (120, 120)
    assert info.skin_mask.shape == (120, 120)


def test_photo_sized_image_runs_on_working_copy():
    image = make_image(1024, 768)
    paint(image, 300, 200, 300, 360, SKIN_RGB)

    start = time.perf_counter()
    result = FaceDetector().detect(image, "photo")
    elapsed = time.perf_counter() - start

    info = result.debug_info
    assert (info.image_width, info.image_height) == (1024, 768)
    assert (info.working_width, info.working_height) == (640, 480)
    assert elapsed < 10.0

    assert result.candidate_count == 1
    region = result.candidates[0].region
    # Regions come back in full-image coordinates with the 10% margin applied
    assert abs(region.left - 285) <= 20
    assert abs(region.top - 182) <= 20
    assert abs(region.width - 330) <= 30
    assert abs(region.height - 396) <= 30
    assert region.lies_within((1024, 768))
