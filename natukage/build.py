#!/usr/bin/env python3
"""
Build the static diary site.

Content layout (relative to content_root):

    2023/
      04/
        01.sexp      one entry per day, file stem is the day number
        02.sexp
    images/          source images referenced by (img ...) items
    source/          copied verbatim into the output directory
    albums.sexp      optional album index

Output: <output_dir>/YYYY/MM.html per month, index.html, albums.html and
the published images under img/.

Usage: python -m natukage.build [config.yml]
"""
import shutil
import sys
from datetime import date
from pathlib import Path

import yaml  # pip install pyyaml

from .albums import load_albums
from .diary_content import load_document
from .errors import ParseError
from .images import ImageConverter, resolve_images
from .render import render_albums_page, render_index_page, render_month_page

DEFAULT_CONFIG = {
    "site_title": "Natuka.ge",
    "lang": "ja",
    "home_label": "ホームへ",
    "content_root": ".",
    "output_dir": "public",
    "source_dir": "source",
    "image_dir": "images",
    "image_cache_dir": ".cache/images",
    "albums_file": "albums.sexp",
    "strict": False,
    "extra_head": [],
    "extra_footer": [],
}


class BuildError(Exception):
    pass


# -----------------------
# Config
# -----------------------

def get_config_path_from_args(argv=None):
    """
    Determine which config file to use.

    - If a path is passed as first argument, use that (it must exist).
    - Otherwise, use config.yml in the working directory if there is one.
    """
    argv = sys.argv[1:] if argv is None else argv
    if argv:
        return Path(argv[0]).resolve(), True
    return (Path.cwd() / "config.yml").resolve(), False


def _as_list(value):
    # extra_head / extra_footer can be a string or a list
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(x) for x in value]
    return []


def load_config(config_path: Path, required: bool = False) -> dict:
    """Load YAML config and apply defaults. Relative paths resolve against the config's directory."""
    data = {}
    if config_path.exists():
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise BuildError(f"Config file must hold a mapping: {config_path}")
    elif required:
        raise BuildError(f"Config file not found: {config_path}")

    cfg = dict(DEFAULT_CONFIG)
    cfg.update({k: v for k, v in data.items() if v is not None})
    cfg["strict"] = bool(cfg["strict"])
    cfg["extra_head"] = _as_list(cfg["extra_head"])
    cfg["extra_footer"] = _as_list(cfg["extra_footer"])

    base_dir = config_path.parent
    content_root = (base_dir / cfg["content_root"]).resolve()
    cfg["content_root"] = content_root
    cfg["output_dir"] = (content_root / cfg["output_dir"]).resolve()
    for key in ("source_dir", "image_dir", "image_cache_dir", "albums_file"):
        cfg[key] = (content_root / cfg[key]).resolve()
    return cfg


# -----------------------
# Discovery
# -----------------------

def _number(path: Path):
    stem = path.stem if path.is_file() else path.name
    return int(stem) if stem.isdigit() else None


def collect_entries(content_root: Path, output_dir: Path):
    """
    Walk YEAR/MONTH/DAY and return { year: { month: { date: path } } }.
    Non-numeric names are skipped, as is the output directory.
    """
    entries = {}

    for year_dir in sorted(content_root.iterdir()):
        if not year_dir.is_dir() or year_dir.resolve() == output_dir:
            continue
        year = _number(year_dir)
        if year is None:
            continue  # images, source, .git, etc.

        for month_dir in sorted(year_dir.iterdir()):
            month = _number(month_dir)
            if not month_dir.is_dir() or month is None:
                print(f"WARNING: skipping {month_dir}", file=sys.stderr)
                continue

            for day_file in sorted(month_dir.iterdir()):
                day = _number(day_file)
                if not day_file.is_file() or day is None:
                    print(f"WARNING: skipping {day_file}", file=sys.stderr)
                    continue
                try:
                    day_date = date(year, month, day)
                except ValueError:
                    print(f"WARNING: {day_file} is not a calendar date, skipping", file=sys.stderr)
                    continue
                entries.setdefault(year, {}).setdefault(month, {})[day_date] = day_file

    return entries


def load_entry(path: Path, converter: ImageConverter):
    """Parse one entry file and publish the images it references."""
    with path.open("rb") as f:
        document = load_document(f)
    return resolve_images(document, converter)


# -----------------------
# Output
# -----------------------

def write_page(path: Path, html_page: str):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(html_page, encoding="utf-8")
    print(f"Wrote {path}")


def build_month_pages(entries: dict, cfg: dict, converter: ImageConverter):
    """
    Write one page per month. A broken entry is reported and left out,
    unless cfg["strict"] is set. Returns (months_by_year, failure_count).
    """
    output_dir = cfg["output_dir"]
    months_by_year = {}
    failures = 0

    for year, months in sorted(entries.items()):
        for month, days in sorted(months.items()):
            documents = {}
            for day, path in sorted(days.items()):
                try:
                    documents[day] = load_entry(path, converter)
                except (ParseError, OSError) as exc:
                    if cfg["strict"]:
                        raise
                    print(f"ERROR: {path}: {exc}", file=sys.stderr)
                    failures += 1

            if not documents:
                continue

            html_page = render_month_page(year, month, documents, cfg)
            write_page(output_dir / f"{year:04}" / f"{month:02}.html", html_page)
            months_by_year.setdefault(year, []).append(month)

    return months_by_year, failures


def copy_source(source_dir: Path, output_dir: Path):
    """Copy static files (CSS, favicon, ...) into the output directory."""
    if not source_dir.is_dir():
        return
    shutil.copytree(source_dir, output_dir, dirs_exist_ok=True)
    print(f"Copied {source_dir} to {output_dir}")


def build_albums(cfg: dict) -> str:
    """Write albums.html if there is an albums file; return its href or ""."""
    albums_file = cfg["albums_file"]
    if not albums_file.is_file():
        return ""

    with albums_file.open("rb") as f:
        index = load_albums(f)
    write_page(cfg["output_dir"] / "albums.html", render_albums_page(index, cfg))
    return "/albums.html"


def main(argv=None) -> int:
    config_path, required = get_config_path_from_args(argv)
    try:
        cfg = load_config(config_path, required=required)
    except BuildError as exc:
        print(exc, file=sys.stderr)
        return 1

    output_dir = cfg["output_dir"]
    output_dir.mkdir(parents=True, exist_ok=True)

    entries = collect_entries(cfg["content_root"], output_dir)
    if not entries:
        print("No entries found.", file=sys.stderr)
        return 1

    converter = ImageConverter(cfg["image_dir"], output_dir / "img", cfg["image_cache_dir"])

    try:
        months_by_year, failures = build_month_pages(entries, cfg, converter)
    except (ParseError, OSError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    try:
        albums_href = build_albums(cfg)
    except (ParseError, OSError) as exc:
        print(f"ERROR: {cfg['albums_file']}: {exc}", file=sys.stderr)
        if cfg["strict"]:
            return 1
        failures += 1
        albums_href = ""

    copy_source(cfg["source_dir"], output_dir)

    write_page(output_dir / "index.html", render_index_page(months_by_year, cfg, albums_href=albums_href))

    if failures:
        print(f"{failures} entr{'y' if failures == 1 else 'ies'} failed to build.", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
