"""Storage of payment-proof images.

The booking only keeps the URL returned here; the image itself is never
inspected beyond its declared content type.
"""

import logging
import posixpath
import uuid

from django.conf import settings
from django.core.files.base import File
from django.core.files.storage import Storage, default_storage

from ticketing.domain.errors import BookingValidationError

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


class PaymentProofStorage:
    """Saves uploaded proofs through a Django storage backend."""

    def __init__(
        self,
        storage: Storage | None = None,
        directory: str | None = None,
        max_bytes: int | None = None,
    ) -> None:
        options = settings.TICKETING
        self._storage = storage or default_storage
        self._directory = directory or options["PAYMENT_PROOF_DIR"]
        self._max_bytes = max_bytes or options["PAYMENT_PROOF_MAX_BYTES"]

    def save(self, upload: File, content_type: str) -> str:
        """Store ``upload`` and return its public URL.

        Raises:
            BookingValidationError: If the upload is not an accepted image
                or is too large.
        """
        extension = _EXTENSIONS.get(content_type)
        if extension is None:
            raise BookingValidationError("Payment proof must be a JPEG, PNG or WebP image")
        if upload.size is not None and upload.size > self._max_bytes:
            raise BookingValidationError("Payment proof image is too large")
        name = posixpath.join(self._directory, f"{uuid.uuid4().hex}{extension}")
        saved_name = self._storage.save(name, upload)
        url = self._storage.url(saved_name)
        logger.info("Stored payment proof %s", saved_name)
        return url
