"""
Resource addressing convention.

A resource bundle is addressed by a ``(locale, type)`` pair. The pair maps to a
git branch and the branch maps to a fetch refspec:

    (locale="en", type="cards")
        -> branch   "en/cards"
        -> refspec  "+refs/heads/en/cards:refs/remotes/origin/en/cards"

The mapping is a fixed bijection so that other tooling (bundle generators,
mirrors) can compute the same branch name. Bump ``NAMING_VERSION`` whenever the
convention changes.

Validation rule, applied to both locale and type:
    - non-empty
    - ASCII letters, digits, ``_`` and ``-`` only
    - must start with a letter or a digit

Components that pass this rule cannot contain ``/``, so distinct pairs always
produce distinct branches and distinct local refs. The resulting
``refs/heads/<branch>`` is additionally checked against git's ref format.
"""

import re
from typing import Optional, Tuple

from dulwich.refs import check_ref_format

from assetsync.errors import ValidationError

NAMING_VERSION = 1

REMOTE_NAME = "origin"
LOCAL_BRANCH_PREFIX = "refs/heads/"
REMOTE_TRACKING_PREFIX = f"refs/remotes/{REMOTE_NAME}/"

_COMPONENT_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


def validate_component(value) -> bool:
    """Check whether a locale or type string may be used in a branch name."""
    if not isinstance(value, str):
        return False
    return bool(_COMPONENT_RE.match(value))


def branch_name_from_locale_type(locale: str, type: str) -> Optional[str]:
    """
    Derive the branch name of a resource bundle.

    Args:
        locale: Locale of the resource, e.g. "en"
        type: Type of the resource, e.g. "cards"

    Returns:
        The branch name ("en/cards"), or None if either component is invalid
    """
    if not (validate_component(locale) and validate_component(type)):
        return None

    branch = f"{locale}/{type}"
    if not check_ref_format((LOCAL_BRANCH_PREFIX + branch).encode("ascii")):
        return None
    return branch


def require_branch_name(locale: str, type: str) -> str:
    """Same as branch_name_from_locale_type, but raise ValidationError on bad input."""
    branch = branch_name_from_locale_type(locale, type)
    if branch is None:
        raise ValidationError(
            f"Invalid resource key ({locale!r}, {type!r}): locale and type must "
            "be non-empty and contain only ASCII letters, digits, '_' or '-', "
            "starting with a letter or digit"
        )
    return branch


def refspec_of_branch(branch: str) -> str:
    """
    Build the fetch refspec for a branch.

    The remote branch is force-fetched into its own remote-tracking ref, so two
    resources fetched by the same process never write the same local ref.
    """
    return f"+{LOCAL_BRANCH_PREFIX}{branch}:{REMOTE_TRACKING_PREFIX}{branch}"


def parse_refspec(refspec: str) -> Tuple[bool, str, str]:
    """
    Split a refspec into its parts.

    Args:
        refspec: A refspec of the form "[+]<src>:<dst>"

    Returns:
        Tuple of (force, source_ref, destination_ref)
    """
    force = refspec.startswith("+")
    if force:
        refspec = refspec[1:]
    src, sep, dst = refspec.partition(":")
    if not sep or not src or not dst:
        raise ValidationError(f"Malformed refspec: {refspec!r}")
    return force, src, dst
