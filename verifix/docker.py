"""Docker image tag resolution for sandboxed tool runs."""

import logging
import re

import httpx
from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

logger = logging.getLogger(__name__)

DOCKER_HUB_TAGS_URL = "https://hub.docker.com/v2/repositories/{image}/tags"
DEFAULT_TAG = "latest"

_SEMVER_RANGE = re.compile(r"^([\^~])\s*v?(\d+)(?:\.(\d+))?(?:\.(\d+))?$")


def to_specifier_set(constraint: str, scheme: str = "npm") -> SpecifierSet:
    """Convert a tag constraint into a PEP 440 specifier set.

    Caret and tilde ranges of the npm scheme are expanded; anything else must
    already be a valid PEP 440 specifier or a bare version.

    Args:
        constraint: Constraint such as ``^16.0.0``, ``~11.0.2`` or ``>=17``
        scheme: Versioning scheme the constraint is written in

    Returns:
        Equivalent SpecifierSet
    """
    constraint = constraint.strip()
    match = _SEMVER_RANGE.match(constraint) if scheme == "npm" else None
    if match:
        operator, major_raw, minor_raw, patch_raw = match.groups()
        major = int(major_raw)
        minor = int(minor_raw or 0)
        patch = int(patch_raw or 0)
        lower = f">={major}.{minor}.{patch}"
        if operator == "^":
            # leftmost non-zero component given is the one allowed to change
            if major > 0 or minor_raw is None:
                upper = f"<{major + 1}"
            elif minor > 0 or patch_raw is None:
                upper = f"<0.{minor + 1}"
            else:
                upper = f"<0.0.{patch + 1}"
        elif minor_raw is None:
            upper = f"<{major + 1}"
        else:
            upper = f"<{major}.{minor + 1}"
        return SpecifierSet(f"{lower},{upper}")

    try:
        version = Version(constraint.lstrip("v"))
    except InvalidVersion:
        return SpecifierSet(constraint)

    if len(version.release) < 3:
        return SpecifierSet(f"=={version}.*")
    return SpecifierSet(f"=={version}")


class DockerTagResolver:
    """Pick the newest image tag that satisfies a version constraint."""

    def __init__(self, timeout: float = 30.0, max_pages: int = 10):
        """Initialize the resolver.

        Args:
            timeout: Registry request timeout in seconds
            max_pages: Maximum number of tag pages fetched per image
        """
        self.timeout = timeout
        self.max_pages = max_pages
        self._cache: dict[str, list[str]] = {}

    async def get_tag(self, image: str, constraint: str | None, scheme: str = "npm") -> str:
        """Resolve the tag to run for an image.

        Args:
            image: Full image name, e.g. ``renovate/java``
            constraint: Version constraint, or None for the default tag
            scheme: Versioning scheme of the constraint

        Returns:
            Highest matching tag, or ``latest`` if none can be determined
        """
        if not constraint:
            return DEFAULT_TAG

        try:
            spec_set = to_specifier_set(constraint, scheme)
        except InvalidSpecifier:
            logger.warning("Invalid constraint %r for image %s, using %s", constraint, image, DEFAULT_TAG)
            return DEFAULT_TAG

        try:
            tags = await self._fetch_tags(image)
        except httpx.HTTPError as err:
            logger.warning("Failed to list tags for %s: %s", image, err)
            return DEFAULT_TAG

        candidates = []
        for tag in tags:
            try:
                version = Version(tag)
            except InvalidVersion:
                continue  # e.g. "latest", "17-jdk"
            if version in spec_set:
                candidates.append((version, tag))

        if not candidates:
            logger.warning("No tag of %s satisfies %s, using %s", image, constraint, DEFAULT_TAG)
            return DEFAULT_TAG

        _, tag = max(candidates)
        logger.debug("Resolved %s constraint %s to tag %s", image, constraint, tag)
        return tag

    async def _fetch_tags(self, image: str) -> list[str]:
        """Fetch tag names of an image from Docker Hub."""
        if image in self._cache:
            return self._cache[image]

        tags: list[str] = []
        url: str | None = DOCKER_HUB_TAGS_URL.format(image=image)
        params: dict | None = {"page_size": 100}

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for _ in range(self.max_pages):
                if not url:
                    break
                response = await client.get(url, params=params)
                response.raise_for_status()
                payload = response.json()
                tags.extend(item["name"] for item in payload.get("results", []) if "name" in item)
                # "next" already carries the query string
                url = payload.get("next")
                params = None

        self._cache[image] = tags
        return tags
