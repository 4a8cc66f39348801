"""
Model for container image references.
"""
from typing import ClassVar, Optional

from pydantic import BaseModel, ConfigDict, model_validator


class ImageSpec(BaseModel):
    """
    A parsed image reference: ``[registry/]repository[:tag|@sha256:digest]``.

    Exactly one of three variants:
        - tagged: ``registry.example.com/app:1.2``
        - digest: ``app@sha256:<64 hex chars>``, digest holds the hex text only
        - bare: ``app``, which implies the default tag
    """
    model_config = ConfigDict(frozen=True)

    DEFAULT_TAG: ClassVar[str] = "latest"
    DIGEST_ALGORITHM: ClassVar[str] = "sha256"

    registry: Optional[str] = None
    repository: str
    tag: Optional[str] = None
    digest: Optional[str] = None

    @model_validator(mode="after")
    def _tag_or_digest(self) -> "ImageSpec":
        if self.tag is not None and self.digest is not None:
            raise ValueError("an image reference cannot carry both a tag and a digest")
        return self

    @property
    def kind(self) -> str:
        """One of ``tagged``, ``digest`` or ``bare``."""
        if self.digest is not None:
            return "digest"
        if self.tag is not None:
            return "tagged"
        return "bare"

    @property
    def effective_tag(self) -> Optional[str]:
        """The tag a runtime would pull; ``None`` for digest references."""
        if self.digest is not None:
            return None
        return self.tag or self.DEFAULT_TAG

    @property
    def name(self) -> str:
        """Registry and repository without tag or digest."""
        if self.registry:
            return f"{self.registry}/{self.repository}"
        return self.repository

    def __str__(self) -> str:
        if self.digest is not None:
            return f"{self.name}@{self.DIGEST_ALGORITHM}:{self.digest}"
        if self.tag is not None:
            return f"{self.name}:{self.tag}"
        return self.name
