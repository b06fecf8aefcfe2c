"""Append-only history of optimizations and image extractions."""

import logging
import re
import uuid
from dataclasses import asdict, dataclass, replace
from typing import Optional, Union

from .errors import StorageError, StorageQuotaExceededError
from .image_processor import is_image_too_large, make_thumbnail
from .storage import StorageAdapter
from .templates.types import now_ms

logger = logging.getLogger(__name__)

HISTORY_STORAGE_KEY = "text-image-prompt-tools:history"
MAX_RECORDS = 50

PROMPT_OPTIMIZE = "prompt-optimize"
IMAGE_TO_PROMPT = "image-to-prompt"


def _record_id(prefix: str) -> str:
    return f"{prefix}-{now_ms()}-{uuid.uuid4().hex[:9]}"


@dataclass
class PromptOptimizeRecord:
    id: str
    original_prompt: str
    optimized_prompt: str
    model_key: str
    style: str
    timestamp: int
    model_name: Optional[str] = None
    type: str = PROMPT_OPTIMIZE


@dataclass
class ImageToPromptRecord:
    id: str
    image_url: str
    prompt: str
    model_key: str
    timestamp: int
    model_name: Optional[str] = None
    resolution: Optional[dict] = None  # {"width": int, "height": int}
    aspect_ratio: Optional[str] = None
    type: str = IMAGE_TO_PROMPT


HistoryRecord = Union[PromptOptimizeRecord, ImageToPromptRecord]


def new_prompt_record(
    original_prompt: str,
    optimized_prompt: str,
    model_key: str,
    style: str,
    model_name: Optional[str] = None,
) -> PromptOptimizeRecord:
    return PromptOptimizeRecord(
        id=_record_id("prompt"),
        original_prompt=original_prompt,
        optimized_prompt=optimized_prompt,
        model_key=model_key,
        style=style,
        model_name=model_name,
        timestamp=now_ms(),
    )


def new_image_record(
    image_url: str,
    prompt: str,
    model_key: str,
    model_name: Optional[str] = None,
    width: Optional[int] = None,
    height: Optional[int] = None,
    aspect_ratio: Optional[str] = None,
) -> ImageToPromptRecord:
    resolution = {"width": width, "height": height} if width and height else None
    return ImageToPromptRecord(
        id=_record_id("image"),
        image_url=image_url,
        prompt=prompt,
        model_key=model_key,
        model_name=model_name,
        resolution=resolution,
        aspect_ratio=aspect_ratio,
        timestamp=now_ms(),
    )


def record_to_dict(record: HistoryRecord) -> dict:
    return asdict(record)


def record_from_dict(data: dict) -> HistoryRecord:
    if data.get("type") == IMAGE_TO_PROMPT:
        return ImageToPromptRecord(**data)
    return PromptOptimizeRecord(**data)


def compress_image_url(image_url: str) -> str:
    """Shrink large data-URI images for storage.

    Small images and remote URLs are kept. When a thumbnail cannot be made
    the payload is replaced by a ``[compressed]`` marker.
    """
    if not image_url.startswith("data:image") or not is_image_too_large(image_url):
        return image_url

    thumbnail = make_thumbnail(image_url)
    if thumbnail:
        return thumbnail

    match = re.match(r"^data:image/([^;]+);base64,", image_url)
    image_type = match.group(1) if match else "unknown"
    return f"data:image/{image_type};base64,[compressed]"


class HistoryManager:
    """History records stored newest-first as a single capped JSON list."""

    def __init__(self, storage: StorageAdapter, max_records: int = MAX_RECORDS, key: str = HISTORY_STORAGE_KEY) -> None:
        self.storage = storage
        self.max_records = max_records
        self.key = key

    def _load(self) -> list[dict]:
        data = self.storage.get_data(self.key, [])
        return data if isinstance(data, list) else []

    def add_record(self, record: HistoryRecord) -> None:
        """Prepend ``record``, evicting the oldest beyond ``max_records``.

        If storage is over quota, the stored list is cut to half the cap and
        the write retried once. Any storage failure left after that is logged
        and the record dropped; history never fails the request that produced
        it, and the oldest entries may be lost without notice.
        """
        if isinstance(record, ImageToPromptRecord):
            record = replace(record, image_url=compress_image_url(record.image_url))
        entry = record_to_dict(record)

        try:
            self._write(entry)
        except StorageError as e:
            logger.error(f"Could not save history record {record.id}: {e}")

    def _write(self, entry: dict) -> None:
        try:
            self.storage.update_data(self.key, lambda existing: ([entry] + list(existing or []))[: self.max_records], [])
        except StorageQuotaExceededError:
            logger.warning("History storage quota exceeded, dropping older records")
            kept = self._load()[: self.max_records // 2]
            self.storage.set_data(self.key, ([entry] + kept)[: self.max_records])

    def get_records(self, record_type: Optional[str] = None) -> list[HistoryRecord]:
        records = [record_from_dict(item) for item in self._load()]
        if record_type:
            return [r for r in records if r.type == record_type]
        return records

    def get_record(self, record_id: str) -> Optional[HistoryRecord]:
        for item in self._load():
            if item.get("id") == record_id:
                return record_from_dict(item)
        return None

    def delete_record(self, record_id: str) -> None:
        self.storage.update_data(
            self.key, lambda existing: [r for r in (existing or []) if r.get("id") != record_id], []
        )

    def clear_records(self, record_type: Optional[str] = None) -> None:
        if record_type is None:
            self.storage.set_data(self.key, [])
            return
        self.storage.update_data(
            self.key, lambda existing: [r for r in (existing or []) if r.get("type") != record_type], []
        )
