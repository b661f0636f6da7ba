import logging

import database
from database import store_operation

logger = logging.getLogger(__name__)


def available_donors_filter(blood_group: str) -> dict:
    # a missing "available" field counts as available
    return {"bloodGroup": blood_group, "available": {"$ne": False}}


@store_operation
def count_available_donors(blood_group: str) -> int:
    """
    Number of donors of ``blood_group`` who can give right now.

    The caller stores the result on the emergency request; it is a snapshot
    and is never recalculated when donors change their availability later.
    """
    count = database.collection(database.DONORS).count_documents(available_donors_filter(blood_group))
    logger.debug("%d available %s donor(s)", count, blood_group)
    return count
