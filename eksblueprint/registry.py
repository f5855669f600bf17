"""
Container registry retention.

The registry keeps at most ``max_image_count`` images. Untagged images (layers
orphaned by re-tagging ``latest``) are expired first once they are older than
``untagged_expiry_days``. The same policy object renders the ECR lifecycle
rules deployed by the registry stack and previews their effect on a list of
images.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)


def _as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC, the zone ECR reports push times in."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


@dataclass(frozen=True)
class ImageDetail:
    """A single image stored in the registry."""
    digest: str
    pushed_at: datetime
    tags: tuple = ()

    def __post_init__(self):
        object.__setattr__(self, "pushed_at", _as_utc(self.pushed_at))
        object.__setattr__(self, "tags", tuple(self.tags))

    @property
    def tagged(self) -> bool:
        return bool(self.tags)

    @classmethod
    def from_ecr(cls, description: Dict[str, Any]) -> "ImageDetail":
        """Build from one entry of ECR ``describe_images`` ``imageDetails``."""
        return cls(
            digest=description["imageDigest"],
            pushed_at=description["imagePushedAt"],
            tags=tuple(description.get("imageTags") or ()),
        )


@dataclass
class RetentionResult:
    retained: List[ImageDetail] = field(default_factory=list)
    expired: List[ImageDetail] = field(default_factory=list)
    # digest -> description of the rule that expired it
    expired_by: Dict[str, str] = field(default_factory=dict)


@dataclass
class RetentionPolicy:
    """
    Image retention for one repository.

    Args:
        max_image_count: Number of most recent images to keep (at least 1)
        untagged_expiry_days: Age after which untagged images are expired
    """
    max_image_count: int = 10
    untagged_expiry_days: int = 1

    def __post_init__(self):
        if self.max_image_count < 1:
            raise ValueError(f"max_image_count must keep at least 1 image (got {self.max_image_count})")
        if self.untagged_expiry_days < 1:
            raise ValueError(f"untagged_expiry_days must be >= 1 (got {self.untagged_expiry_days})")

    @property
    def untagged_rule_description(self) -> str:
        days = self.untagged_expiry_days
        return f"Remove untagged images after {days} day{'s' if days != 1 else ''}"

    @property
    def count_rule_description(self) -> str:
        return f"Keep last {self.max_image_count} images"

    def lifecycle_rules(self) -> List[Dict[str, Any]]:
        """ECR lifecycle rules in priority order (lowest number evaluated first)."""
        return [
            {
                "rulePriority": 1,
                "description": self.untagged_rule_description,
                "selection": {
                    "tagStatus": "untagged",
                    "countType": "sinceImagePushed",
                    "countUnit": "days",
                    "countNumber": self.untagged_expiry_days,
                },
                "action": {"type": "expire"},
            },
            {
                "rulePriority": 2,
                "description": self.count_rule_description,
                "selection": {
                    "tagStatus": "any",
                    "countType": "imageCountMoreThan",
                    "countNumber": self.max_image_count,
                },
                "action": {"type": "expire"},
            },
        ]

    def lifecycle_policy_text(self) -> str:
        return json.dumps({"rules": self.lifecycle_rules()}, indent=2)

    def evaluate(self, images: Iterable[ImageDetail], now: Optional[datetime] = None) -> RetentionResult:
        """
        Apply the lifecycle rules to a set of images.

        Rules run in priority order and an image expired by one rule is not
        seen by later rules. The count rule considers every remaining image,
        so the retained list never exceeds ``max_image_count``.

        Args:
            images: Images currently in the repository
            now: Evaluation time (defaults to the current UTC time; naive means UTC)

        Returns:
            RetentionResult with retained images newest first
        """
        now = _as_utc(now) if now else datetime.now(timezone.utc)
        cutoff = now - timedelta(days=self.untagged_expiry_days)
        result = RetentionResult()

        remaining = []
        for image in images:
            if not image.tagged and image.pushed_at < cutoff:
                result.expired.append(image)
                result.expired_by[image.digest] = self.untagged_rule_description
            else:
                remaining.append(image)

        remaining.sort(key=lambda image: image.pushed_at, reverse=True)
        result.retained = remaining[:self.max_image_count]
        for image in remaining[self.max_image_count:]:
            result.expired.append(image)
            result.expired_by[image.digest] = self.count_rule_description

        logger.debug(
            f"Retention evaluation: {len(result.retained)} retained, {len(result.expired)} expired"
        )
        return result
