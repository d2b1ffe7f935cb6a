"""Checksum algorithm detection for verification metadata."""

# Priority order; results always follow it regardless of where names appear.
HASH_METHODS = ("sha512", "sha256", "sha1", "md5")


def get_hash_methods(content: str) -> list[str]:
    """Return the supported checksum algorithms mentioned in the content.

    This is a plain case-sensitive substring check, not an XML parse: a name
    counts as soon as it occurs anywhere in the text.

    Args:
        content: Verification metadata file content

    Returns:
        Matching algorithm names in priority order, possibly empty
    """
    return [method for method in HASH_METHODS if method in content]
