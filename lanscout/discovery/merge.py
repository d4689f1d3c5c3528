"""
Merging of advertisement and sweep results.
"""

from typing import Iterable

from .models import Device, ResultSet


def merge_results(advertised: Iterable[Device], swept: Iterable[Device]) -> ResultSet:
    """
    Combine two device sources into one address-keyed set.

    Advertised devices are added first, so a swept device never replaces
    an advertised one with the same address.
    """
    merged = ResultSet()
    for device in advertised:
        merged.add(device)
    for device in swept:
        merged.add(device)
    return merged
