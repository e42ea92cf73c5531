"""Image annotation against an ML prediction endpoint"""

import base64
from typing import Optional

import requests

from ..utils.exceptions import AnnotationFailed
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ImageAnnotator:
    """
    Scores an image with a hosted model.

    The request body is {"instances": [{"image_bytes": {"b64": ...}, "key": "1"}]}
    and the score is the first entry of the first prediction's "scores".
    """

    def __init__(
        self,
        endpoint: str,
        access_token: Optional[str] = None,
        timeout_seconds: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint = endpoint
        self.access_token = access_token
        self.timeout = timeout_seconds
        self.session = session or requests.Session()

    def score(self, image: bytes) -> float:
        """
        Return the model's score for the image.

        Raises:
            AnnotationFailed: transport error, empty body or unexpected payload
        """
        body = {
            "instances": [
                {
                    "image_bytes": {"b64": base64.b64encode(image).decode("ascii")},
                    "key": "1",  # Only used for tracking on the model side
                }
            ]
        }
        headers = {}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"

        try:
            response = self.session.post(
                self.endpoint, json=body, headers=headers, timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise AnnotationFailed(f"Prediction request failed: {e}") from e

        # An empty body usually means the token was rejected
        if not response.content:
            raise AnnotationFailed("Empty prediction response")

        try:
            predictions = response.json().get("predictions") or []
            score = float(predictions[0]["scores"][0])
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            raise AnnotationFailed(f"Cannot parse prediction response: {response.text[:200]}") from e

        logger.info("Prediction received", score=score)
        return score
