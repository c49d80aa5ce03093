from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from app.game.daily.errors import InvalidImageCollectionError


class ImageCategory(str, Enum):
    ANIMALS = "animals"
    ARCHITECTURE = "architecture"
    NATURE = "nature"
    FOOD = "food"
    PRODUCTS = "products"
    SCIENCE = "science"


@dataclass(frozen=True, slots=True)
class ImageAsset:
    id: str
    filename: str
    category: ImageCategory
    is_ai: bool
    url: str
    source: str
    description: str
    date_added: str

    def to_image_data(self) -> dict[str, Any]:
        """Round payload shape sent to the client; file details stay server side."""
        return {
            "id": self.id,
            "url": self.url,
            "category": self.category.value,
            "isAI": self.is_ai,
            "metadata": {"source": self.source, "description": self.description},
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> ImageAsset:
        metadata = payload.get("metadata") or {}
        return cls(
            id=str(payload["id"]),
            filename=str(payload["filename"]),
            category=ImageCategory(payload["category"]),
            is_ai=bool(payload["isAI"]),
            url=str(payload["url"]),
            source=str(metadata.get("source", "")),
            description=str(metadata.get("description", "")),
            date_added=str(metadata.get("dateAdded", "")),
        )


ImageCollection = dict[ImageCategory, list[ImageAsset]]


def _is_valid_url(url: str) -> bool:
    if url.startswith("/"):
        return True
    parsed = urlparse(url)
    return bool(parsed.scheme and parsed.netloc)


def _is_valid_iso_datetime(value: str) -> bool:
    try:
        datetime.fromisoformat(value)
    except ValueError:
        return False
    return True


def validate_image_asset(asset: ImageAsset) -> list[str]:
    errors: list[str] = []
    if not asset.id:
        errors.append("Image ID is required")
    if not asset.url:
        errors.append("Image URL is required")
    elif not _is_valid_url(asset.url):
        errors.append("Image URL must be a valid URL")
    if not asset.source:
        errors.append("Metadata source is required")
    if not asset.description:
        errors.append("Metadata description is required")
    if not asset.filename:
        errors.append("Filename is required")
    elif "." not in asset.filename:
        errors.append("Filename should include file extension")
    if not asset.date_added:
        errors.append("Metadata dateAdded is required")
    elif not _is_valid_iso_datetime(asset.date_added):
        errors.append("Metadata dateAdded must be a valid ISO date string")
    return errors


def validate_image_collection(collection: ImageCollection) -> tuple[bool, list[str]]:
    """Every category needs at least one AI and one human image to build a round."""
    errors: list[str] = []
    for category in ImageCategory:
        assets = collection.get(category)
        if assets is None:
            errors.append(f"Missing category: {category.value}")
            continue

        for index, asset in enumerate(assets):
            asset_errors = validate_image_asset(asset)
            if asset_errors:
                errors.append(f"Category {category.value}, image {index}: {', '.join(asset_errors)}")
            if asset.category != category:
                errors.append(f"Category {category.value}, image {index}: asset category mismatch")

        if len(assets) < 2:
            errors.append(f"Category {category.value} must have at least 2 images")
        if not any(asset.is_ai for asset in assets):
            errors.append(f"Category {category.value} must have at least one AI image")
        if all(asset.is_ai for asset in assets):
            errors.append(f"Category {category.value} must have at least one human image")

    return not errors, errors


def images_by_category(
    collection: ImageCollection,
    category: ImageCategory,
    *,
    is_ai: bool | None = None,
) -> list[ImageAsset]:
    assets = collection.get(category) or []
    if is_ai is None:
        return list(assets)
    return [asset for asset in assets if asset.is_ai == is_ai]


def parse_image_collection(payload: dict[str, Any]) -> ImageCollection:
    try:
        return {
            ImageCategory(category): [ImageAsset.from_dict(item) for item in items]
            for category, items in payload.items()
        }
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidImageCollectionError(f"Malformed image manifest: {exc}") from exc


def load_image_collection(path: str | Path) -> ImageCollection:
    """Reads a JSON manifest of the form {"animals": [asset, ...], ...}."""
    try:
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise InvalidImageCollectionError(f"Cannot read image manifest {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise InvalidImageCollectionError("Image manifest must be a JSON object")

    collection = parse_image_collection(payload)
    is_valid, errors = validate_image_collection(collection)
    if not is_valid:
        raise InvalidImageCollectionError("; ".join(errors))
    return collection
