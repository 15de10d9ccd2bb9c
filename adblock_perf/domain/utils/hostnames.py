"""
Hostname utilities: registrable domain (eTLD+1) derivation.

Uses ``tldextract`` with its bundled Public Suffix List snapshot only, so
results do not depend on network access and stay stable for a given
installed version.
"""

from functools import lru_cache
from typing import Optional

import tldextract

# Offline extractor: bundled suffix list snapshot, never downloaded
_extractor = tldextract.TLDExtract(suffix_list_urls=())


@lru_cache(maxsize=65536)
def get_etld_plus1(hostname: str) -> Optional[str]:
    """
    Return the registrable domain of a hostname or URL.

    Parameters
    ----------
    hostname : str
        Hostname (``cdn.example.co.uk``) or full URL

    Returns
    -------
    str or None
        eTLD+1 (``example.co.uk``), or None when the name has no public
        suffix (IP literals, ``localhost``, bare suffixes)

    Examples
    --------
    >>> get_etld_plus1("www.example.co.uk")
    'example.co.uk'
    >>> get_etld_plus1("localhost") is None
    True
    """
    if not hostname:
        return None
    extracted = _extractor(hostname.lower())
    if not extracted.domain or not extracted.suffix:
        return None
    return f"{extracted.domain}.{extracted.suffix}"


def get_registrable_label(etld_plus1: str) -> str:
    """Return the label in front of the public suffix (``google`` for ``google.com``)."""
    return etld_plus1.split(".")[0]
