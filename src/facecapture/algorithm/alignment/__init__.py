from facecapture.algorithm.alignment.classifier import (
    AlignmentClassifier,
    DEFAULT_CHECKS,
    build_inputs,
)
from facecapture.algorithm.alignment.output import (
    AlignmentInputs,
    CheckFailure,
    GuideBox,
    GuidanceDebug,
)

__all__ = [
    "AlignmentClassifier",
    "DEFAULT_CHECKS",
    "build_inputs",
    "AlignmentInputs",
    "CheckFailure",
    "GuideBox",
    "GuidanceDebug",
]
