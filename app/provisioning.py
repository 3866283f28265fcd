"""
Identity -> profile provisioning.

Called by the sign-up use case inside the transaction that inserts the
identity, so a failed profile insert leaves no identity behind.
"""

import logging
from .models import Profile

logger = logging.getLogger(__name__)

DEFAULT_ROLE = 'member'


def build_profile(identity) -> Profile:
    metadata = identity.raw_user_meta_data or {}
    return Profile(
        id=identity.id,
        email=identity.email,
        full_name=metadata.get('full_name'),
        role=DEFAULT_ROLE,
    )


async def provision_profile(session, identity) -> Profile:
    """Add the profile for a freshly flushed identity to the same transaction."""
    profile = build_profile(identity)
    session.add(profile)
    await session.flush()
    logger.info({'msg': 'profile_provisioned', 'identity': str(identity.id)})
    return profile
