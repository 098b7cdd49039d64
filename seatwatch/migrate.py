"""Tracked-to-archive migration.

Once a section's subscribers have been notified, their tracked subscription
is moved into ``sections_archive``. The archive keeps one document per term
and crn and accumulates the users of every subscription ever moved there.

The archive write always happens before the tracked document is deleted. If
the write fails the tracked document is left as it was, so a failed migration
can simply be retried. The price is that a retry after a lost acknowledgement
appends the same users a second time: users are not deduplicated.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass

from seatwatch.common.exceptions import DuplicateArchiveWarning
from seatwatch.models import ArchivedSubscription, TrackedSubscription
from seatwatch.store.base import (
    SECTIONS_ARCHIVE,
    SECTIONS_TRACKED,
    DocumentRef,
    RecordStore,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MigrationResult:
    """Outcome of one successful migration.

    Attributes:
        archive_ref: The archive document that received the users.
        created: True if the archive document was created by this migration.
        users_added: Number of users moved from the tracked document.
        archive_matches: Number of archive documents found for the term and crn.
    """

    archive_ref: DocumentRef
    created: bool
    users_added: int
    archive_matches: int = 0


class ArchiveMigrator:
    """Moves tracked subscriptions into the archive collection.

    Concurrent migrations for the same term and crn are not locked against
    each other; callers must run them one at a time.
    """

    def __init__(
        self,
        store: RecordStore,
        tracked_collection: str = SECTIONS_TRACKED,
        archive_collection: str = SECTIONS_ARCHIVE,
    ) -> None:
        self.store = store
        self.tracked_collection = tracked_collection
        self.archive_collection = archive_collection

    def migrate(
        self, crn: str, tracked_doc_id: str, term: str
    ) -> MigrationResult:
        """Move one tracked subscription into the archive.

        Args:
            crn: Course reference number of the section.
            tracked_doc_id: Id of the document in the tracked collection.
            term: Term code the subscription belongs to.

        Returns:
            MigrationResult describing which archive document was written.

        Raises:
            DocumentNotFoundError: If the tracked document doesn't exist.
            DataShapeError: If either users field isn't a list. Nothing has
                been written when this is raised.
            DocumentReadError: If querying or reading the store fails.
            DocumentWriteError: If the archive write or the delete fails.
        """
        matches = self.store.find_by_equality(
            self.archive_collection, "term", term, ("crn", crn)
        )

        tracked_snapshot = self.store.get(
            self.tracked_collection, tracked_doc_id
        )

        with self.store.transaction():
            if matches:
                if len(matches) > 1:
                    paths = [match.ref.path for match in matches]
                    logger.warning(
                        f"Duplicate archive documents for term {term} "
                        f"crn {crn}: {paths}",
                        extra={"term": term, "crn": crn, "archives": paths},
                    )
                    warnings.warn(
                        f"{len(matches)} archive documents for term {term} "
                        f"crn {crn}; merging into {paths[0]}",
                        DuplicateArchiveWarning,
                        stacklevel=2,
                    )

                target = matches[0]
                archived = target.decode(ArchivedSubscription)
                tracked = tracked_snapshot.decode(TrackedSubscription)

                self.store.set_merge(
                    target.ref, {"users": archived.users + tracked.users}
                )
                result = MigrationResult(
                    archive_ref=target.ref,
                    created=False,
                    users_added=len(tracked.users),
                    archive_matches=len(matches),
                )
            else:
                data = tracked_snapshot.data
                archive_ref = self.store.add(self.archive_collection, data)
                users = data.get("users")
                result = MigrationResult(
                    archive_ref=archive_ref,
                    created=True,
                    users_added=len(users) if isinstance(users, list) else 0,
                )

            self.store.delete(tracked_snapshot.ref)

        logger.info(
            f"Moved {tracked_snapshot.ref.path} into {result.archive_ref.path}"
            f" ({'created' if result.created else 'merged'},"
            f" {result.users_added} users)"
        )
        return result


def move_tracked_section(
    store: RecordStore, crn: str, tracked_doc_id: str, term: str
) -> MigrationResult:
    """Move a tracked subscription into the archive.

    Shorthand for ``ArchiveMigrator(store).migrate(crn, tracked_doc_id, term)``.
    """
    return ArchiveMigrator(store).migrate(crn, tracked_doc_id, term)
