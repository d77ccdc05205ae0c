"""
Turns the sparse bid matrix into a total order of candidates for one paper.

Tiers, best first: YES, MAYBE, no bid, NO. A NO bid is a soft preference, so
those reviewers stay in the ranking behind everyone else. Within a tier the
least loaded reviewer comes first, and the reviewer id settles any remaining
tie so identical inputs always rank identically.
"""

import numpy as np

from .models import BidValue

NO_BID_TIER = 1

BID_TIERS = {
    BidValue.YES: 3,
    BidValue.MAYBE: 2,
    BidValue.NO: 0,
}


def preference_tier(value):
    """Map a bid value (or None for no bid) onto its preference tier."""
    if value is None:
        return NO_BID_TIER

    if value not in BID_TIERS:
        raise ValueError("{} bids have no preference tier".format(value))

    return BID_TIERS[value]


def rank(candidates, bids, load_tracker):
    """
    Return `candidates` ordered best first.

    :param candidates: iterable of reviewer ids, all eligible for the paper.
    :param bids: dict mapping reviewer id to the BidValue placed on the paper.
        Reviewers missing from the dict have not bid.
    :param load_tracker: a LoadTracker giving each reviewer's current load.
    """
    ordered = sorted(candidates)
    if not ordered:
        return []

    tiers = np.array([preference_tier(bids.get(r)) for r in ordered])
    loads = np.array([load_tracker.current_load(r) for r in ordered])

    # np.lexsort sorts by the last key first
    order = np.lexsort((np.arange(len(ordered)), loads, -tiers))
    return [ordered[i] for i in order]
