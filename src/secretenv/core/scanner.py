"""Candidate selection from an environment snapshot."""

import logging
from collections.abc import Mapping
from types import MappingProxyType

from .types import CandidateEntry

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "SECRETENV_SECRET_"


def snapshot_environment(environ: Mapping[str, str]) -> Mapping[str, str]:
    """Capture an immutable copy of an environment mapping.

    The pipeline reads its input exactly once through this snapshot so that
    later changes to `os.environ` cannot race with resolution.
    """
    return MappingProxyType(dict(environ))


def scan_candidates(
    environ: Mapping[str, str], prefix: str = DEFAULT_PREFIX
) -> list[CandidateEntry]:
    """Select the variables whose name starts with `prefix`.

    Entries keep the iteration order of `environ`; that order is the
    deterministic tie-break used by the scheduler. A variable named exactly
    `prefix` has no output key and is skipped.

    Args:
        environ: Name to value mapping to scan
        prefix: Recognized name prefix, stripped from the output key

    Returns:
        One CandidateEntry per recognized variable
    """
    if not prefix:
        raise ValueError("Candidate prefix must not be empty")

    candidates = []
    for name, value in environ.items():
        if not name.startswith(prefix):
            continue
        key = name[len(prefix) :]
        if not key:
            logger.warning(f"Ignoring variable {name}: empty name after removing prefix")
            continue
        candidates.append(CandidateEntry(name=name, key=key, raw_value=value))

    logger.debug(f"Found {len(candidates)} {prefix}* variables")
    return candidates
