"""MediaPipe face mesh landmark backend."""

import logging
import urllib.request
from pathlib import Path
from typing import Any, List, Optional

import numpy as np

from facecapture.inference.base import InferenceError, LandmarkDetector
from facecapture.types import EXPECTED_KEYPOINTS

logger = logging.getLogger(__name__)

FACE_LANDMARKER_MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/face_landmarker/"
    "face_landmarker/float16/1/face_landmarker.task"
)


def _get_model_path() -> Path:
    """Get path to the face landmarker model, downloading if necessary."""
    cache_dir = Path.home() / ".cache" / "facecapture" / "models"
    cache_dir.mkdir(parents=True, exist_ok=True)

    model_path = cache_dir / "face_landmarker.task"

    if not model_path.exists():
        logger.info("Downloading face landmarker model to %s...", model_path)
        try:
            urllib.request.urlretrieve(FACE_LANDMARKER_MODEL_URL, model_path)
            logger.info("Download complete.")
        except Exception as e:
            raise InferenceError(
                f"Failed to download face landmarker model: {e}\n"
                f"You can manually download from: {FACE_LANDMARKER_MODEL_URL}\n"
                f"And save to: {model_path}"
            ) from e

    return model_path


class MediaPipeFaceMeshBackend(LandmarkDetector):
    """MediaPipe FaceLandmarker (Tasks API) producing 468-point meshes.

    The landmarker returns 478 points (468 mesh + 10 iris); only the
    mesh points are passed on. ``max_num_faces`` defaults to 2 so a
    second face in view is reported and the frame can be rejected.

    Args:
        max_num_faces: Maximum faces to detect (default: 2).
        min_detection_confidence: Minimum face detection confidence.
        min_presence_confidence: Minimum face presence confidence.
        model_path: Local ``.task`` file; downloaded to the user cache if None.
    """

    def __init__(
        self,
        max_num_faces: int = 2,
        min_detection_confidence: float = 0.5,
        min_presence_confidence: float = 0.5,
        model_path: Optional[str] = None,
    ):
        self._max_num_faces = max_num_faces
        self._min_detection_confidence = min_detection_confidence
        self._min_presence_confidence = min_presence_confidence
        self._model_path = model_path
        self._landmarker: Optional[Any] = None
        self._initialized = False

    def initialize(self) -> None:
        if self._initialized:
            return

        try:
            from mediapipe.tasks import python
            from mediapipe.tasks.python import vision
        except ImportError as e:
            raise InferenceError(
                "MediaPipe is required for face landmark detection. "
                "Install it with: pip install 'facecapture[ml]'"
            ) from e

        model_path = Path(self._model_path) if self._model_path else _get_model_path()
        if not model_path.exists():
            raise InferenceError(f"Face landmarker model not found: {model_path}")

        options = vision.FaceLandmarkerOptions(
            base_options=python.BaseOptions(model_asset_path=str(model_path)),
            running_mode=vision.RunningMode.IMAGE,
            num_faces=self._max_num_faces,
            min_face_detection_confidence=self._min_detection_confidence,
            min_face_presence_confidence=self._min_presence_confidence,
        )
        self._landmarker = vision.FaceLandmarker.create_from_options(options)
        self._initialized = True
        logger.info("MediaPipe face landmarker initialized (max_faces=%d)", self._max_num_faces)

    def detect(self, image: np.ndarray) -> List[np.ndarray]:
        """Detect faces in a BGR frame.

        Returns:
            One (468, 3) array of normalized x, y, z per face.
        """
        if not self._initialized or self._landmarker is None:
            raise InferenceError("Backend not initialized. Call initialize() first.")

        import cv2
        import mediapipe as mp

        image_rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=image_rgb)
        result = self._landmarker.detect(mp_image)

        faces = []
        for face_lms in result.face_landmarks or []:
            mesh = face_lms[:EXPECTED_KEYPOINTS]
            faces.append(np.array([[lm.x, lm.y, lm.z] for lm in mesh], dtype=np.float64))
        return faces

    def cleanup(self) -> None:
        if self._landmarker is not None:
            self._landmarker.close()
            self._landmarker = None
        self._initialized = False
        logger.debug("MediaPipe face landmarker released")


__all__ = ["MediaPipeFaceMeshBackend", "FACE_LANDMARKER_MODEL_URL"]
