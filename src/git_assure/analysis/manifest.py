"""Manifest Parser — extract declared dependencies from a contents payload."""

import base64
import binascii
import json
import logging
import re
from typing import Any, Mapping, Optional

from git_assure.models import DependencyDescriptor, Ecosystem

logger = logging.getLogger(__name__)

MAX_DEPENDENCIES = 20

_REQUIREMENT_PATTERN = re.compile(r"^([a-zA-Z0-9_.-]+)[=~!<>]{1,2}([0-9a-zA-Z.-]+)")
_NON_VERSION_CHARS = re.compile(r"[^0-9.]")


class ParsedManifest:
    """Dependencies taken from one manifest, with the pre-cap total."""

    def __init__(self, dependencies: list[DependencyDescriptor], total: int) -> None:
        self.dependencies = dependencies
        self.total = total


def decode_content(payload: Any) -> Optional[str]:
    """Decode the base64 ``content`` field of a GitHub contents response."""
    if not isinstance(payload, dict) or not payload.get("content"):
        return None
    return base64.b64decode(payload["content"]).decode("utf-8")


def parse_package_json(text: str) -> list[DependencyDescriptor]:
    """Union of dependencies and devDependencies, versions reduced to digits/dots."""
    pkg = json.loads(text)
    merged: dict[str, Any] = {}
    for section in ("dependencies", "devDependencies"):
        declared = pkg.get(section)
        if isinstance(declared, dict):
            merged.update(declared)
    return [
        DependencyDescriptor(
            name=name,
            declared_version=_NON_VERSION_CHARS.sub("", str(version)),
            ecosystem=Ecosystem.npm,
        )
        for name, version in merged.items()
    ]


def parse_requirements(text: str) -> list[DependencyDescriptor]:
    """Pinned or bounded ``name<op>version`` lines; everything else is skipped."""
    deps: list[DependencyDescriptor] = []
    for line in text.splitlines():
        match = _REQUIREMENT_PATTERN.match(line.strip())
        if match:
            deps.append(
                DependencyDescriptor(
                    name=match.group(1),
                    declared_version=match.group(2),
                    ecosystem=Ecosystem.pypi,
                )
            )
    return deps


# Precedence order: the first manifest that yields dependencies wins.
PARSERS = (
    ("package.json", parse_package_json),
    ("requirements.txt", parse_requirements),
)


def parse_manifests(payloads: Mapping[str, Any]) -> ParsedManifest:
    """Parse the first supported manifest present in ``payloads``."""
    for filename, parser in PARSERS:
        if filename not in payloads:
            continue
        try:
            text = decode_content(payloads[filename])
            if text is None:
                continue
            deps = parser(text)
        except (ValueError, TypeError, binascii.Error, UnicodeDecodeError, AttributeError) as exc:
            logger.warning("Could not parse %s: %s", filename, exc)
            continue
        if deps:
            return ParsedManifest(deps[:MAX_DEPENDENCIES], total=len(deps))
    return ParsedManifest([], total=0)
