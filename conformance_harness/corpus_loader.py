"""Loading of pre-extracted test corpora from manifest files."""

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

import yaml

from conformance_harness.models.record import (
    CorpusManifest,
    ManifestEntry,
    TestRecord,
)

log = logging.getLogger(__name__)


async def load_corpus(
    manifest_path: Path, query: str | None = None
) -> Sequence[TestRecord]:
    """Load test records from a corpus manifest.

    Args:
        manifest_path: Path to the YAML manifest
        query: Keep only tests whose path contains this string

    Returns:
        Test records in manifest order

    Raises:
        FileNotFoundError: If the manifest or a referenced test file is missing
        ValueError: If the manifest is empty

    """
    if not manifest_path.is_file():
        raise FileNotFoundError(f"Corpus manifest not found: {manifest_path}")

    content = await asyncio.to_thread(manifest_path.read_text, encoding="utf-8")
    data = yaml.safe_load(content)
    if not data:
        raise ValueError(f"Empty corpus manifest: {manifest_path}")

    manifest = CorpusManifest.model_validate(data)
    entries = [
        entry for entry in manifest.tests if query is None or query in entry.path
    ]
    log.info(
        "Loaded %d of %d test(s) from %s",
        len(entries),
        len(manifest.tests),
        manifest_path,
    )

    return await asyncio.gather(
        *(_to_record(entry, manifest_path.parent) for entry in entries)
    )


async def _to_record(entry: ManifestEntry, base_dir: Path) -> TestRecord:
    """Resolve a manifest entry's source text into a test record."""
    code = entry.code
    if code is None:
        code = await asyncio.to_thread(
            (base_dir / entry.path).read_text, encoding="utf-8"
        )
    return TestRecord(path=entry.path, code=code, metadata=entry.metadata)
