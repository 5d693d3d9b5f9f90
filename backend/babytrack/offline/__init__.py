"""Offline-first sync for family devices.

Local changes are written to a device-local store together with a queued
event; the push synchronizer later replays the queue against the server,
and the pull reconciler folds in changes made on other devices.
"""

from babytrack.offline.api import SyncApiClient  # noqa: F401
from babytrack.offline.client import FullSyncResult, SyncClient  # noqa: F401
from babytrack.offline.pull import PullReconciler, PullResult  # noqa: F401
from babytrack.offline.push import (  # noqa: F401
    EventRejectedError,
    PushResult,
    PushSynchronizer,
    SyncInProgressError,
)
from babytrack.offline.queue import MutationQueue  # noqa: F401
from babytrack.offline.store import LocalStore  # noqa: F401
