"""
Converge local directory and file names toward the current remote state.

Every directory (and mirrored attachment) the exporter writes is named after
the remote id of the resource it holds, optionally followed by a slug of its
display name:

    slugified  ->  42-getting-started      99-diagram.png
    id_only    ->  42                      99.png

The id is the identity; the suffix is cosmetic. When a category is renamed
upstream, or the naming policy changes, the existing entry for that id is
renamed in place instead of a second directory appearing next to it. Running
the export twice against an unchanged help center renames nothing.

Ownership is decided by a strict delimiter: an entry belongs to id 1 when its
name is exactly "1" or starts with "1-" or "1.". So "10-faq" never belongs to
id 1, which a plain startswith() check would get wrong.

The reconciler assumes it has the output directory to itself for the whole
run. Two exports writing into the same directory can race between listing a
directory and creating/renaming inside it; nothing here guards against that.
"""

import logging
import os
from pathlib import Path

from .slug import slugify

log = logging.getLogger(__name__)

SLUGIFIED = "slugified"
ID_ONLY = "id_only"
NAMING_POLICIES = (SLUGIFIED, ID_ONLY)

_DELIMITERS = ("-", ".")


class ReconcileError(Exception):
    """A directory or file could not be converged to its desired name."""


def owned_by(entry, resource_id):
    """True if the directory entry name belongs to resource_id."""
    rid = str(resource_id)
    if entry == rid:
        return True
    return entry.startswith(rid) and entry[len(rid):len(rid) + 1] in _DELIMITERS


class PathReconciler:
    """
    Applies one naming policy to every directory and file it is asked about.

    created and renamed collect (old, new) paths of every change made, so a
    caller can tell whether a run was a no-op.
    """

    def __init__(self, policy=SLUGIFIED):
        if policy not in NAMING_POLICIES:
            raise ValueError(f"unknown naming policy {policy!r}, expected one of {NAMING_POLICIES}")
        self.policy = policy
        self.created: list[Path] = []
        self.renamed: list[tuple[Path, Path]] = []

    # ---- Names -------------------------------------------------------------------------------------------------------------

    def dir_name(self, resource_id, display_name):
        if self.policy == ID_ONLY:
            return str(resource_id)
        return f"{resource_id}-{slugify(display_name)}"

    def file_name(self, resource_id, original_name):
        """
        Name of a mirrored file. The extension of original_name is always
        kept; the stem only under the slugified policy.
        """
        stem, ext = os.path.splitext(original_name or "")
        if self.policy == ID_ONLY:
            return f"{resource_id}{ext}"
        return f"{resource_id}-{slugify(stem)}{ext}"

    # ---- Filesystem --------------------------------------------------------------------------------------------------------

    def find_entry(self, parent_dir, resource_id):
        """
        Return the name of the entry in parent_dir owned by resource_id, or None.
        More than one owner is an invariant violation, not a guess to make.
        """
        try:
            matches = sorted(e for e in os.listdir(parent_dir) if owned_by(e, resource_id))
        except OSError as e:
            raise ReconcileError(f"cannot list {parent_dir}: {e}") from e
        if len(matches) > 1:
            raise ReconcileError(
                f"{parent_dir} holds {len(matches)} entries for id {resource_id}: {', '.join(matches)}"
            )
        return matches[0] if matches else None

    def converge(self, parent_dir, resource_id, desired_name):
        """
        Rename the entry owned by resource_id to desired_name if it has a
        different name. Never creates anything. Returns the desired path,
        which exists afterwards only if some entry for the id already did.
        """
        parent = Path(parent_dir).absolute()
        current = self.find_entry(parent, resource_id)
        target = parent / desired_name
        if current is None or current == desired_name:
            return target

        source = parent / current
        if target.exists():
            raise ReconcileError(f"cannot rename {source} to {target}: target already exists")
        log.debug("      renaming %s to %s", source, target)
        try:
            source.rename(target)
        except OSError as e:
            raise ReconcileError(f"cannot rename {source} to {target}: {e}") from e
        self.renamed.append((source, target))
        return target

    def reconcile(self, parent_dir, resource_id, display_name):
        """
        Guarantee exactly one directory for resource_id in parent_dir, named
        per the active policy, and return its absolute path.

          no entry for the id          ->  create it
          entry with the desired name  ->  nothing to do
          entry with another name      ->  rename it (upstream rename)
        """
        name = self.dir_name(resource_id, display_name)
        path = self.converge(parent_dir, resource_id, name)
        if path.exists():
            if not path.is_dir():
                raise ReconcileError(f"{path} exists but is not a directory")
            return path

        log.debug("      creating %s", path)
        try:
            path.mkdir()
        except OSError as e:
            raise ReconcileError(f"cannot create {path}: {e}") from e
        self.created.append(path)
        return path
