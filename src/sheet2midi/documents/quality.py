"""Image quality checks run before recognition."""

import logging

import cv2
import numpy as np

from sheet2midi.models.errors import ErrorKind, FailureSignal, RecognitionFailure

logger = logging.getLogger(__name__)


def blur_score(image: np.ndarray) -> float:
    """Variance of the Laplacian; low values mean few sharp edges."""
    if image.ndim == 3:
        image = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    return float(cv2.Laplacian(image, cv2.CV_64F).var())


def check_image_quality(image: np.ndarray, blur_threshold: float, min_side_px: int) -> float:
    """Raise a blur failure for images too small or too soft to read. Returns the score."""
    height, width = image.shape[:2]
    if min(height, width) < min_side_px:
        raise RecognitionFailure(
            FailureSignal(
                cause=ErrorKind.BLUR.value,
                detail=f"Image is {width}x{height}px, need at least {min_side_px}px per side",
            )
        )
    score = blur_score(image)
    logger.debug(f"Blur score {score:.1f} (threshold {blur_threshold})")
    if score < blur_threshold:
        raise RecognitionFailure(
            FailureSignal(
                cause=ErrorKind.BLUR.value,
                detail=f"Blur score {score:.1f} below threshold {blur_threshold}",
            )
        )
    return score
