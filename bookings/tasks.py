import logging

from celery import shared_task

logger = logging.getLogger(__name__)


def _connected_store():
    from .remote import RemoteStore

    store = RemoteStore.from_settings()
    if not store.initialize():
        return None
    return store


@shared_task
def seed_remote_store():

    from .seeding import seed_remote

    store = _connected_store()
    if store is None:
        logger.warning("Remote store offline - skipping seeding")
        return "Skipped - remote store offline"

    try:
        users_created, movies_created = seed_remote(store)
    finally:
        store.shutdown()

    logger.info(f"Seeding complete: {users_created} users, {movies_created} movies created")
    return f"Seeded {users_created} users and {movies_created} movies"


@shared_task
def purge_orphan_tickets():

    store = _connected_store()
    if store is None:
        logger.warning("Remote store offline - skipping orphan ticket purge")
        return "Skipped - remote store offline"

    try:
        deleted = store.await_result(store.purge_orphan_tickets(), default=0, description="orphan ticket purge")
    finally:
        store.shutdown()

    logger.info(f"Purged {deleted} tickets whose screening no longer exists")
    return f"Purged {deleted} orphan tickets"
