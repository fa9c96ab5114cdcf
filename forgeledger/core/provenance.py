"""ProvenanceLedger: the service boundary for build provenance.

Wires the LedgerStore, BuildRegistry, ActionLedger and EventDispatcher
into one object exposing the create / append / complete operations and
their read-side companions.
"""

from __future__ import annotations

import logging
from typing import Any

from forgeledger.config import LedgerSettings
from forgeledger.core.action_ledger import ActionLedger
from forgeledger.core.build_registry import BuildRegistry, Clock
from forgeledger.core.store import LedgerStore
from forgeledger.models.actions import ActionType, BuildAction
from forgeledger.models.builds import Build, BuildStats, BuildStatus
from forgeledger.routing.dispatcher import EventDispatcher
from forgeledger.routing.sinks.local_file import LocalFileSink
from forgeledger.routing.sinks.logging_sink import LoggingSink

logger = logging.getLogger(__name__)


class ProvenanceLedger:
    """Tamper-evident provenance ledger for build pipelines.

    Parameters
    ----------
    settings:
        Runtime configuration.  Uses ``LedgerSettings()`` if not provided.
    dispatcher:
        Event dispatcher to use.  When omitted one is built from settings
        with a logging sink and, if enabled, a local file sink.
    clock:
        Source of timestamps shared by every component.
    """

    def __init__(
        self,
        settings: LedgerSettings | None = None,
        *,
        dispatcher: EventDispatcher | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.settings = settings or LedgerSettings()
        self.store = LedgerStore(
            self.settings.ledger_path, busy_timeout_ms=self.settings.busy_timeout_ms
        )
        self.dispatcher = dispatcher or self._default_dispatcher()
        self.registry = BuildRegistry(self.store, self.dispatcher, clock=clock)
        self.actions = ActionLedger(
            self.store,
            self.dispatcher,
            clock=clock,
            require_append_authority=self.settings.require_append_authority,
        )
        logger.debug("ProvenanceLedger opened at %s", self.settings.ledger_path)

    def _default_dispatcher(self) -> EventDispatcher:
        dispatcher = EventDispatcher()
        dispatcher.register_sink(LoggingSink())
        if self.settings.enable_file_events:
            dispatcher.register_sink(LocalFileSink(self.settings.events_path))
        return dispatcher

    # ------------------------------------------------------------------
    # Build lifecycle
    # ------------------------------------------------------------------

    def create_build(self, build_id: str, project_name: str, authority: str) -> Build:
        return self.registry.create_build(build_id, project_name, authority)

    def append_action(
        self,
        build_id: str,
        action_type: ActionType | str,
        description: str,
        content_hash: bytes | str,
        *,
        caller_id: str | None = None,
        idempotency_key: str | None = None,
    ) -> int:
        return self.actions.append_action(
            build_id,
            action_type,
            description,
            content_hash,
            caller_id=caller_id,
            idempotency_key=idempotency_key,
        )

    def complete_build(
        self,
        build_id: str,
        success: bool,
        artifact_id: str | None,
        caller_id: str | None,
    ) -> Build:
        return self.registry.complete_build(build_id, success, artifact_id, caller_id)

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    def get_build(self, build_id: str) -> Build:
        return self.registry.get_build(build_id)

    def list_builds(
        self,
        *,
        authority: str | None = None,
        status: BuildStatus | None = None,
    ) -> list[Build]:
        return self.registry.list_builds(authority=authority, status=status)

    def get_stats(self) -> BuildStats:
        return self.registry.get_stats()

    def get_action(self, build_id: str, step_number: int) -> BuildAction:
        return self.actions.get_action(build_id, step_number)

    def get_actions(self, build_id: str) -> list[BuildAction]:
        return self.actions.get_actions(build_id)

    def verify_chain(self, build_id: str) -> bool:
        return self.actions.verify_chain(build_id)

    def export_anchor(self, build_id: str) -> dict[str, Any]:
        return self.actions.export_anchor(build_id)

    def verify_against_anchor(self, build_id: str, anchor: dict[str, Any]) -> bool:
        return self.actions.verify_against_anchor(build_id, anchor)
