"""Service layer for admin-managed profile content."""

from datetime import datetime
from pathlib import Path

from portfolio.exceptions import StorageError, ValidationError
from portfolio.models import AdminProfileData, PublicPortfolio
from portfolio.repositories import ProfileSettingsRepository
from portfolio.services.token_service import Clock
from portfolio.utils.common import ensure_utc, utc_now
from portfolio.utils.logger import logger

ACCEPTED_CV_TYPES = ("application/pdf",)
PDF_MAGIC = b"%PDF-"


class ProfileService:
    """Profile image and CV management."""

    def __init__(
        self,
        repo: ProfileSettingsRepository,
        *,
        download_dir: Path,
        cv_filename: str = "cv.pdf",
        cv_max_bytes: int = 2 * 1024 * 1024,
        image_placeholder: str = "",
        clock: Clock = utc_now,
    ):
        self.repo = repo
        self.download_dir = download_dir
        self.cv_filename = cv_filename
        self.cv_max_bytes = cv_max_bytes
        self.image_placeholder = image_placeholder
        self._clock = clock

    @property
    def cv_path(self) -> Path:
        return self.download_dir / self.cv_filename

    @property
    def cv_url(self) -> str:
        return "/download/cv"

    async def update_profile_image(self, image_data_uri: str) -> None:
        """Store a new ``data:image/...`` URI on the settings record."""
        if not image_data_uri.startswith("data:image/"):
            raise ValidationError("Image must be a data URI starting with 'data:image/'.")
        await self.repo.upsert(profile_image_uri=image_data_uri)
        logger.info(f"Profile image updated ({len(image_data_uri)} characters)")

    async def save_cv(self, content: bytes, content_type: str | None) -> datetime:
        """Validate and store an uploaded CV, replacing the previous one.

        Args:
            content: Raw file bytes
            content_type: MIME type reported by the upload

        Returns:
            Time of the update

        Raises:
            ValidationError: Empty, too large or not a PDF
            StorageError: The file could not be written
        """
        if not content:
            raise ValidationError("CV file is missing.")
        if len(content) > self.cv_max_bytes:
            max_mb = self.cv_max_bytes / (1024 * 1024)
            raise ValidationError(f"CV file must be at most {max_mb:g}MB.")
        if content_type not in ACCEPTED_CV_TYPES or not content.startswith(PDF_MAGIC):
            raise ValidationError("Invalid CV file format. Please upload a PDF file.")

        try:
            self.download_dir.mkdir(parents=True, exist_ok=True)
            self.cv_path.write_bytes(content)
        except OSError as e:
            logger.error(f"Failed to write CV to {self.cv_path}: {e}")
            raise StorageError("Could not store the CV file.") from e

        updated_at = self._clock()
        await self.repo.upsert(cv_updated_at=updated_at)
        logger.info(f"CV updated ({len(content)} bytes)")
        return updated_at

    async def get_admin_profile(self) -> AdminProfileData:
        record = await self.repo.find_one()
        image = record.profile_image_uri if record and record.profile_image_uri else None
        return AdminProfileData(
            profile_image_url=image or self.image_placeholder,
            cv_url=self.cv_url,
            cv_updated_at=ensure_utc(record.cv_updated_at) if record else None,
        )

    async def get_public_portfolio(self) -> PublicPortfolio:
        """Public landing data; the CV link is omitted until one is uploaded."""
        record = await self.repo.find_one()
        image = record.profile_image_uri if record and record.profile_image_uri else None
        return PublicPortfolio(
            profile_image_url=image or self.image_placeholder,
            cv_url=self.cv_url if self.cv_path.is_file() else None,
        )
