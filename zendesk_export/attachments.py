"""Mirror article attachments into the locale's attachments directory."""

import logging
from pathlib import Path

from .api import ApiError
from .reconcile import ReconcileError

log = logging.getLogger(__name__)

ATTACHMENTS_DIR = "attachments"


class AttachmentMirror:
    """
    Downloads each attachment at most once, across runs.

    Once a file owned by the attachment id exists it is never fetched again,
    even if the content changed upstream; a stale copy is the accepted price
    of not re-downloading everything on every run. A failed download leaves
    nothing on disk, so the next run tries again.
    """

    def __init__(self, client, reconciler):
        self.client = client
        self.reconciler = reconciler
        self.mirrored: dict[tuple, Path] = {}   # (target dir, attachment id) -> file, for this run
        self.fetched = 0

    def ensure_local(self, attachment, target_dir):
        """
        Return the local file for attachment in target_dir, downloading it if
        no file for its id exists yet. Returns None if it could not be mirrored.
        """
        target_dir = Path(target_dir)
        file_name = self.reconciler.file_name(attachment.remote_id, attachment.file_name)
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            path = self.reconciler.converge(target_dir, attachment.remote_id, file_name)
        except (OSError, ReconcileError) as e:
            log.warning("      !!! cannot place attachment %s (%s): %s",
                        attachment.remote_id, attachment.content_url, e)
            return None

        if path.exists():
            self.mirrored[(target_dir, attachment.remote_id)] = path
            return path

        log.info(" - - - - %s", attachment.file_name)
        # written under a name no id owns, so a half-written file is never taken for a mirrored one
        partial = target_dir / f".{path.name}.part"
        try:
            partial.write_bytes(self.client.fetch_bytes(attachment.content_url))
            partial.replace(path)
        except (ApiError, OSError) as e:
            partial.unlink(missing_ok=True)
            log.warning("      !!! failed download of attachment %s: %s. error: %s",
                        attachment.remote_id, attachment.content_url, e)
            return None

        self.fetched += 1
        self.mirrored[(target_dir, attachment.remote_id)] = path
        return path
