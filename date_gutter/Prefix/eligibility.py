# eligibility.py
# Description: Decides whether the prefix engine acts on a document at all
#
# Imports
from typing import Dict, FrozenSet
#
# Third-Party Imports
from loguru import logger
#
# Local Imports
from ..Buffer.text_types import DocumentIdentity
from ..config import GutterSettings, SettingsProvider
#
########################################################################################################################
#
# Constants:

SUPPORTED_SCHEMES: FrozenSet[str] = frozenset({"file", "untitled"})
# Virtual schemes used by host-side object browsers and member/stream views.
RESERVED_REMOTE_SCHEMES: FrozenSet[str] = frozenset({"objectBrowser", "member", "streamfile"})
RESERVED_PATH_PREFIX = "/IBMi/"

#
########################################################################################################################
#
# Functions:

def is_document_eligible(identity: DocumentIdentity, settings: GutterSettings) -> bool:
    """Uncached eligibility decision for one document under one settings snapshot."""
    if not settings.enabled:
        return False
    if identity.scheme in RESERVED_REMOTE_SCHEMES or identity.path.startswith(RESERVED_PATH_PREFIX):
        return False
    if identity.scheme not in SUPPORTED_SCHEMES:
        return False
    extension = identity.extension
    if extension is None:
        return False
    return extension in settings.enabled_file_types

#
########################################################################################################################
#
# Classes:

class EligibilityFilter:
    """
    Memoizing front for `is_document_eligible`.

    Decisions are cached per document identity and dropped as soon as the
    settings generation moves, so a configuration change is never served a
    stale answer.
    """

    def __init__(self, settings_provider: SettingsProvider):
        self._settings_provider = settings_provider
        self._cache: Dict[DocumentIdentity, bool] = {}
        self._cache_generation = settings_provider.generation

    def is_eligible(self, identity: DocumentIdentity) -> bool:
        generation = self._settings_provider.generation
        if generation != self._cache_generation:
            self._cache.clear()
            self._cache_generation = generation
        decision = self._cache.get(identity)
        if decision is None:
            decision = is_document_eligible(identity, self._settings_provider.settings)
            self._cache[identity] = decision
            logger.trace(f"Eligibility for {identity}: {decision} (generation {generation})")
        return decision

    def forget(self, identity: DocumentIdentity) -> None:
        """Drop a cached decision, e.g. after a document was renamed."""
        self._cache.pop(identity, None)

#
# End of eligibility.py
########################################################################################################################
