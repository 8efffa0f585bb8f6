"""
Site Identifiers

Conversions between the site identifier schemes used by SL's journey
planning APIs. SL moved its journey planner from HAFAS to EFA without
keeping identifiers compatible, so stored ids have to be migrated:

    legacy site id  "4400"
    HAFAS id        "300104400"         (XFGYEDCBA)
    EFA global id   "9091001000004400"  (9-digit prefix + 7-digit site number)

In the HAFAS layout X is always 3 (site), Y is the transport authority
number modulo 10 (1 for SL) and GFEDCBA is the site number.

Only the forward direction is implemented.
"""

import re

from trafiklab.core.exceptions import FormatError

# Pubtrans GID prefix for "Place (site)" entities in the Stockholm region.
# Other entity types or authorities may use a different prefix.
EFA_PREFIX = "909100100"

SL_AUTHORITY_DIGIT = "1"

HAFAS_ID_LENGTH = 9
EFA_PREFIX_LENGTH = 9
EFA_ID_LENGTH = 16
MAX_SHORT_ID_LENGTH = 7

# Positions of G, F, E, D, C, B, A in XFGYEDCBA
_SITE_NUMBER_POSITIONS = (2, 1, 4, 5, 6, 7, 8)

_DIGITS = re.compile(r"[0-9]+")


def _is_digits(value: str) -> bool:
    return bool(_DIGITS.fullmatch(value))


def convert_id_to_hafas(short_id: str) -> str:
    """
    Convert a legacy SL site id to the 9-digit HAFAS format.

    Ids longer than 7 digits are assumed to already be in a compatible
    format and are returned unchanged.

    Args:
        short_id: Site id, e.g. "4400"

    Returns:
        HAFAS id, e.g. "300104400"

    Raises:
        FormatError: If the id is not numeric
    """
    if len(short_id) > MAX_SHORT_ID_LENGTH and _is_digits(short_id):
        return short_id

    if not _is_digits(short_id):
        raise FormatError(f"failed to convert id to hafas: {short_id!r} is not numeric")

    site_id = int(short_id)
    high, low = divmod(site_id, 100000)

    return f"3{high:02d}{SL_AUTHORITY_DIGIT}{low:05d}"


def convert_hafas_to_efa(hafas_id: str, prefix: str) -> str:
    """
    Convert a HAFAS site id to an EFA global id.

    The 7-digit site number is read back from positions 2,1,4,5,6,7,8 of
    the HAFAS id and appended to the 9-digit EFA prefix.

    Args:
        hafas_id: 9-digit HAFAS id starting with "3"
        prefix: 9-digit EFA prefix, usually EFA_PREFIX

    Returns:
        16-digit EFA global id

    Raises:
        FormatError: If the HAFAS id or the prefix is malformed
    """
    if len(hafas_id) != HAFAS_ID_LENGTH:
        raise FormatError(f"invalid HAFAS ID {hafas_id!r}: must be exactly 9 digits")
    if hafas_id[0] != "3":
        raise FormatError(f"invalid HAFAS ID {hafas_id!r}: must start with '3'")
    for i, char in enumerate(hafas_id):
        if not _is_digits(char):
            raise FormatError(
                f"invalid HAFAS ID {hafas_id!r}: character {i} ({char!r}) is not a digit"
            )

    site_number = "".join(hafas_id[pos] for pos in _SITE_NUMBER_POSITIONS)
    if not _is_digits(site_number):
        raise FormatError(f"extracted site number {site_number!r} is not numeric")

    if len(prefix) != EFA_PREFIX_LENGTH:
        raise FormatError(f"invalid EFA prefix {prefix!r}: must be exactly 9 digits")
    for i, char in enumerate(prefix):
        if not _is_digits(char):
            raise FormatError(
                f"invalid EFA prefix {prefix!r}: character {i} ({char!r}) is not a digit"
            )

    return prefix + site_number


def is_site_id(value: str) -> bool:
    """Whether value looks like a legacy site id or a HAFAS site id."""
    if not _is_digits(value):
        return False
    if len(value) <= MAX_SHORT_ID_LENGTH:
        return True
    return len(value) == HAFAS_ID_LENGTH and value[0] == "3"


def convert_site_id_to_efa(site_id: str, prefix: str = EFA_PREFIX) -> str:
    """
    Convert a legacy or HAFAS site id straight to an EFA global id.
    """
    return convert_hafas_to_efa(convert_id_to_hafas(site_id), prefix)
