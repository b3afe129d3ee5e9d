"""
Linear max-margin face / non-face classifier.

Training is a one-off step producing an immutable ClassifierModel; the model is
then shared read-only by every classification call, including across threads.
"""

import logging
from dataclasses import dataclass
from typing import Iterable

import numpy as np
from sklearn.svm import LinearSVC

from facefinder.config import DEFAULT_CONFIG, DetectionConfig
from facefinder.core.errors import InvalidArgument, InvalidOperation
from facefinder.core.features import extract_sample, features_for_sample
from facefinder.core.models import Region

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ClassifierModel:
    """Trained separating hyperplane: face iff weights . x + bias > 0."""
    weights: np.ndarray
    bias: float
    training_examples: int = 0

    def __post_init__(self):
        weights = np.array(self.weights, dtype=np.float64).reshape(-1)
        weights.setflags(write=False)
        object.__setattr__(self, "weights", weights)
        object.__setattr__(self, "bias", float(self.bias))

    @property
    def feature_length(self) -> int:
        return self.weights.shape[0]

    def decision_value(self, features: np.ndarray) -> float:
        """Signed distance-like margin of a feature vector."""
        features = np.asarray(features, dtype=np.float64).reshape(-1)
        if features.shape[0] != self.feature_length:
            raise InvalidArgument(
                f"Feature vector has {features.shape[0]} values, model expects {self.feature_length}"
            )
        return float(np.dot(self.weights, features) + self.bias)


def train_classifier(
    examples: Iterable[tuple[np.ndarray, bool]],
    minimum_count: int,
    c: float = 1.0,
    max_iter: int = 5000,
) -> ClassifierModel:
    """
    Fit a linear SVM to labelled feature vectors.

    Args:
        examples: (feature vector, is_face) pairs
        minimum_count: Fewest examples training will accept
        c: SVM regularisation strength
        max_iter: Solver iteration cap

    Returns:
        Immutable ClassifierModel

    Raises:
        InvalidOperation: Too few examples, or only one class present
        InvalidArgument: Feature vectors of differing lengths
    """
    examples = list(examples)
    if len(examples) < minimum_count:
        raise InvalidOperation(
            f"Need at least {minimum_count} training examples, got {len(examples)}"
        )
    if not examples:
        raise InvalidOperation("No training examples supplied")

    lengths = {np.asarray(vector).size for vector, _ in examples}
    if len(lengths) != 1:
        raise InvalidArgument(f"Training vectors have inconsistent lengths: {sorted(lengths)}")

    X = np.vstack([np.asarray(vector, dtype=np.float64).reshape(-1) for vector, _ in examples])
    y = np.array([1 if is_face else 0 for _, is_face in examples])

    positives = int(y.sum())
    if positives == 0 or positives == len(y):
        raise InvalidOperation("Training examples must include both faces and non-faces")

    logger.info(
        f"Training linear SVM on {len(y)} examples "
        f"({positives} faces, {len(y) - positives} non-faces, {X.shape[1]} features)"
    )

    svm = LinearSVC(C=c, max_iter=max_iter, random_state=0)
    svm.fit(X, y)

    accuracy = float(svm.score(X, y))
    logger.info(f"Training accuracy: {accuracy:.3f}")

    return ClassifierModel(
        weights=svm.coef_[0],
        bias=svm.intercept_[0],
        training_examples=len(y),
    )


def classify(model: ClassifierModel | None, features: np.ndarray) -> bool:
    """True when the feature vector falls on the face side of the margin."""
    if model is None:
        raise InvalidOperation("Classifier has not been trained")
    return model.decision_value(features) > 0


@dataclass(frozen=True)
class FaceClassifier:
    """Trained model bundled with the sample/feature settings it was trained with."""
    model: ClassifierModel
    config: DetectionConfig = DEFAULT_CONFIG

    @classmethod
    def train(
        cls,
        labelled_samples: Iterable[tuple[np.ndarray, bool]],
        config: DetectionConfig = DEFAULT_CONFIG,
    ) -> "FaceClassifier":
        """
        Train from labelled image crops (RGB or grayscale, any size).

        Each crop is resized to the configured sample size before feature
        extraction, exactly as candidates are at classification time.
        """
        examples = (
            (features_for_sample(extract_sample(image, None, config.sample_size), config), is_face)
            for image, is_face in labelled_samples
        )
        model = train_classifier(
            examples,
            config.minimum_training_examples,
            c=config.svm_c,
            max_iter=config.svm_max_iter,
        )
        return cls(model=model, config=config)

    def features_for(self, image: np.ndarray, region: Region | None = None) -> np.ndarray:
        sample = extract_sample(image, region, self.config.sample_size)
        return features_for_sample(sample, self.config)

    def decision_value(self, image: np.ndarray, region: Region | None = None) -> float:
        return self.model.decision_value(self.features_for(image, region))

    def is_face(self, image: np.ndarray, region: Region | None = None) -> bool:
        return classify(self.model, self.features_for(image, region))
