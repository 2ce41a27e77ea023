"""Release classification: tag/name text to release metadata.

A release is either addressed explicitly with ``+target`` tokens
(``v1.0.0+mobile+cloud``) or matched against keyword groups in the tag and
release name. Multi-target releases are labelled ``general`` with the
explicit targets listed separately.
"""

from __future__ import annotations

import re
from typing import Any, Mapping

from releasehook.errors import ReleaseValidationError
from releasehook.models import MAX_RELEASE_TARGETS, RELEASE_TYPES, ReleaseMetadata, ReleaseType

# Checked in order; the first group with a keyword in the text wins.
KEYWORD_TABLE: tuple[tuple[ReleaseType, frozenset[str]], ...] = (
    (ReleaseType.MOBILE, frozenset({"mobile", "ios", "android", "app"})),
    (ReleaseType.DESKTOP, frozenset({"desktop", "windows", "macos", "linux", "electron"})),
    (ReleaseType.CLOUD, frozenset({"cloud", "server", "api", "service"})),
    (ReleaseType.SDK, frozenset({"sdk", "library", "package", "npm", "pip"})),
)

_MULTI_TARGET_RE = re.compile(r"\+([a-z]+)")
_SEMVER_RE = re.compile(r"^(\d+\.\d+\.\d+)")
_PRERELEASE_RE = re.compile(r"-(alpha|beta|rc|pre|dev)")


def classify(tag: str, name: str) -> ReleaseMetadata:
    """Classify a release from its tag and display name.

    Raises ReleaseValidationError when more than four ``+target`` tokens
    are present. The result is not otherwise validated; call
    :func:`validate_release_metadata` before using it.
    """
    tag = tag or ""
    name = name or ""
    combined = f"{tag.lower()} {name.lower()}"

    targets = _extract_multi_targets(combined)
    if targets:
        if len(targets) > MAX_RELEASE_TARGETS:
            raise ReleaseValidationError(
                f"Too many release targets: {', '.join(t.value for t in targets)}. "
                f"Maximum allowed is {MAX_RELEASE_TARGETS}."
            )
        release_type = ReleaseType.GENERAL
    else:
        release_type = _detect_single_target(combined)
        targets = [release_type]

    return ReleaseMetadata(
        type=release_type,
        targets=tuple(targets),
        version=extract_version(tag),
        tag=tag,
        name=name,
        prerelease=is_prerelease(tag),
        draft=False,
    )


def _extract_multi_targets(text: str) -> list[ReleaseType]:
    targets: list[ReleaseType] = []
    for token in _MULTI_TARGET_RE.findall(text):
        if token in RELEASE_TYPES:
            target = ReleaseType(token)
            if target not in targets:
                targets.append(target)
    return targets


def _detect_single_target(text: str) -> ReleaseType:
    for release_type, keywords in KEYWORD_TABLE:
        if any(keyword in text for keyword in keywords):
            return release_type
    return ReleaseType.GENERAL


def _strip_v(tag: str) -> str:
    return tag[1:] if tag.startswith("v") else tag


def extract_version(tag: str) -> str:
    clean = _strip_v(tag)
    match = _SEMVER_RE.match(clean)
    return match.group(1) if match else clean


def is_prerelease(tag: str) -> bool:
    return _PRERELEASE_RE.search(_strip_v(tag)) is not None


def validate_release_metadata(metadata: ReleaseMetadata) -> None:
    """Raise ReleaseValidationError if ``metadata`` breaks a target invariant."""
    if not metadata.version:
        raise ReleaseValidationError("Release version is required")

    if not metadata.targets:
        raise ReleaseValidationError("At least one release target is required")

    if len(metadata.targets) > MAX_RELEASE_TARGETS:
        raise ReleaseValidationError(
            f"Too many release targets: {', '.join(t.value for t in metadata.targets)}. "
            f"Maximum allowed is {MAX_RELEASE_TARGETS}."
        )

    if ReleaseType.GENERAL in metadata.targets and len(metadata.targets) > 1:
        raise ReleaseValidationError("General releases cannot have additional targets")


def parse_release_metadata(data: Mapping[str, Any]) -> ReleaseMetadata:
    """Build validated metadata from an untrusted mapping (e.g. JSON)."""
    if not isinstance(data, Mapping):
        raise ReleaseValidationError("Release metadata must be an object")

    release_type = data.get("type")
    if not isinstance(release_type, str) or release_type not in RELEASE_TYPES:
        raise ReleaseValidationError("Invalid release type")

    raw_targets = data.get("targets")
    if not isinstance(raw_targets, list) or not raw_targets:
        raise ReleaseValidationError("Release targets must be a non-empty array")
    if any(not isinstance(t, str) or t not in RELEASE_TYPES for t in raw_targets):
        raise ReleaseValidationError(f"Invalid release targets: {raw_targets}")

    for field_name in ("version", "tag"):
        value = data.get(field_name)
        if not isinstance(value, str) or not value:
            raise ReleaseValidationError(f"Release {field_name} is required")

    # GitHub allows releases without a display name
    name = data.get("name", "")
    if not isinstance(name, str):
        raise ReleaseValidationError("Release name must be a string")

    for field_name in ("prerelease", "draft"):
        if not isinstance(data.get(field_name), bool):
            raise ReleaseValidationError(f"{field_name.capitalize()} flag must be a boolean")

    targets: list[ReleaseType] = []
    for t in raw_targets:
        if ReleaseType(t) not in targets:
            targets.append(ReleaseType(t))

    metadata = ReleaseMetadata(
        type=ReleaseType(release_type),
        targets=tuple(targets),
        version=data["version"],
        tag=data["tag"],
        name=name,
        prerelease=data["prerelease"],
        draft=data["draft"],
    )
    validate_release_metadata(metadata)
    return metadata
