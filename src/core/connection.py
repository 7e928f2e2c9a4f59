"""One workspace as seen by the bridge."""

from __future__ import annotations

from core.correlator import MessageCorrelator
from core.identity import IdentityCache
from core.mentions import MentionNormalizer
from core.ports import BackendPort, EventSourcePort
from core.reactions import ReactionAggregator


class Connection:
    """Bundle a workspace's ports with the services that depend on its users.

    The identity cache belongs to the connection, so both bridge directions
    touching this workspace share it.
    """

    def __init__(self, name: str, backend: BackendPort, event_source: EventSourcePort) -> None:
        self.name = name
        self.backend = backend
        self.event_source = event_source
        self.identities = IdentityCache(backend)
        self.normalizer = MentionNormalizer(self.identities)
        self.aggregator = ReactionAggregator(self.identities)
        self.correlator = MessageCorrelator(backend, self.normalizer)
