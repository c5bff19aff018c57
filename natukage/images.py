"""
Thumbnails and published copies of the images referenced by entries.

Source images live in the image directory of the content root. For every
image an entry references we publish:

    img/<name>.webp         hard link to the original
    img/<name>-thumb.jpeg   thumbnail bounded to 300x96

Thumbnails are generated into a cache directory next to a hash of the
source file, and only regenerated when that hash changes.
"""
import errno
import hashlib
import os
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path

from PIL import Image  # pip install Pillow

from .diary_content import Document

THUMBNAIL_SIZE = (300, 96)
HASH_SUFFIX = ".hash"
URL_PREFIX = "/img"


@dataclass(frozen=True)
class ImageAsset:
    name: str
    width: int
    height: int

    @property
    def thumbnail_name(self) -> str:
        return f"{self.name}-thumb.jpeg"

    @property
    def actual_name(self) -> str:
        return f"{self.name}.webp"

    @property
    def thumbnail_path(self) -> str:
        return f"{URL_PREFIX}/{self.thumbnail_name}"

    @property
    def actual_path(self) -> str:
        return f"{URL_PREFIX}/{self.actual_name}"


def file_digest(path: Path) -> str:
    h = hashlib.blake2b(digest_size=8)
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()


def generate_thumbnail(src: Path, dst: Path):
    with Image.open(src) as img:
        thumb = img.convert("RGB")
        thumb.thumbnail(THUMBNAIL_SIZE)
        thumb.save(dst, format="JPEG")


def link_image(original: Path, link: Path):
    """Hard-link `original` at `link`, replacing whatever is there."""
    if link.exists() or link.is_symlink():
        link.unlink()
    try:
        os.link(original, link)
    except OSError as exc:
        if exc.errno != errno.EXDEV:
            raise
        shutil.copy2(original, link)


class ImageConverter:
    def __init__(self, src_dir: Path, dst_dir: Path, cache_dir: Path):
        self.src_dir = src_dir
        self.dst_dir = dst_dir
        self.cache_dir = cache_dir
        for d in (src_dir, dst_dir, cache_dir):
            d.mkdir(parents=True, exist_ok=True)
        self._converted = {}

    def convert(self, file_name: str) -> ImageAsset:
        """
        Publish `file_name` from the source directory and return its asset.

        Raises OSError (including PIL's UnidentifiedImageError) when the
        source is missing or cannot be decoded.
        """
        if file_name in self._converted:
            return self._converted[file_name]

        src = self.src_dir / file_name
        base_name = file_name.split(".")[0]
        thumb_cache = self.cache_dir / f"{base_name}-thumb.jpeg"
        hash_path = self.cache_dir / f"{base_name}{HASH_SUFFIX}"

        digest = file_digest(src)
        cached = hash_path.read_text(encoding="utf-8").strip() if hash_path.exists() else None

        if cached != digest:
            print(f"Generating a thumbnail of {file_name}")
            generate_thumbnail(src, thumb_cache)
            hash_path.write_text(digest, encoding="utf-8")
        elif not thumb_cache.exists():
            print(
                f"WARNING: hash of {file_name} is cached but its thumbnail is missing",
                file=sys.stderr,
            )
            generate_thumbnail(src, thumb_cache)

        with Image.open(src) as img:
            width, height = img.size

        asset = ImageAsset(base_name, width, height)
        link_image(thumb_cache, self.dst_dir / asset.thumbnail_name)
        link_image(src, self.dst_dir / asset.actual_name)

        self._converted[file_name] = asset
        return asset


def resolve_images(document: Document, converter: ImageConverter) -> Document:
    """Turn a Document[str] into a Document[ImageAsset]."""
    return document.map_images(converter.convert)
