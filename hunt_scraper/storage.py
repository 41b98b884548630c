"""
Persist crawl results under ``<output_dir>/<slug>/``.

Every resource is written as pretty-printed JSON; list resources are also
written as a flattened CSV with dotted column names.
"""
from __future__ import annotations

import csv
import dataclasses
import io
import json
import logging
import pathlib
from typing import Any, Dict, List

from hunt_scraper.models import ProductCrawl

logger = logging.getLogger(__name__)


def to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, list):
        return [to_jsonable(item) for item in value]
    return value


def flatten(record: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    """
    Flatten nested dicts into dotted keys.

    Lists are kept as JSON text and None becomes an empty cell.
    """
    flat: Dict[str, Any] = {}
    for key, value in record.items():
        name = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            flat.update(flatten(value, name))
        elif isinstance(value, list):
            flat[name] = json.dumps(value, ensure_ascii=False)
        elif value is None:
            flat[name] = ""
        else:
            flat[name] = value
    return flat


def to_csv(records: List[Dict[str, Any]]) -> str:
    if not records:
        return ""

    rows = [flatten(record) for record in records]
    headers: List[str] = []
    for row in rows:
        for key in row:
            if key not in headers:
                headers.append(key)

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=headers, restval="", lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    return buffer.getvalue()


class OutputStore:
    """Writes resources for one or more products to a local directory."""

    def __init__(self, output_dir: str = "output"):
        self.output_dir = pathlib.Path(output_dir)

    def product_dir(self, slug: str) -> pathlib.Path:
        return self.output_dir / slug

    def save(self, slug: str, name: str, data: Any) -> List[pathlib.Path]:
        """
        Write one resource.

        Args:
            slug: Product slug, used as the directory name
            name: Resource name, used as the file stem
            data: A dataclass, a list of dataclasses, or None

        Returns:
            Paths of the files written
        """
        directory = self.product_dir(slug)
        directory.mkdir(parents=True, exist_ok=True)

        payload = to_jsonable(data)
        json_path = directory / f"{name}.json"
        json_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        written = [json_path]
        logger.info("Saved %s to %s", name, json_path)

        if isinstance(payload, list):
            csv_path = directory / f"{name}.csv"
            csv_path.write_text(to_csv(payload), encoding="utf-8")
            written.append(csv_path)
            logger.info("Saved %s to %s", name, csv_path)

        return written

    def save_crawl(self, crawl: ProductCrawl) -> List[pathlib.Path]:
        written: List[pathlib.Path] = []
        written += self.save(crawl.slug, "reviews", crawl.reviews)
        written += self.save(crawl.slug, "threads", crawl.threads)
        written += self.save(crawl.slug, "launches", crawl.launches)
        if crawl.details is not None:
            written += self.save(crawl.slug, "details", crawl.details)
        written += self.save(crawl.slug, "makers", crawl.makers)
        return written
