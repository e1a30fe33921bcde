import logging

from .models import Hymn
from .store import HymnStore

logger = logging.getLogger(__name__)


class EditFlow:
    """Create and edit hymns, discarding drafts abandoned without a title.

    Call :meth:`finish` whenever an editor closes, saved or not.
    """

    def __init__(self, store: HymnStore):
        self.store = store

    def begin_new(self) -> Hymn:
        draft = Hymn(title="")
        self.store.insert(draft)
        logger.debug("Created draft hymn %s", draft.id)
        return draft

    def apply(self, hymn: Hymn, **fields) -> Hymn:
        hymn.update(**fields)
        return self.store.save(hymn)

    def finish(self, hymn: Hymn) -> bool:
        """Delete *hymn* if its title is still blank. Returns True if discarded."""
        if not hymn.is_draft:
            return False
        self.store.delete(hymn)
        logger.info("Discarded untitled draft hymn %s", hymn.id)
        return True
