"""
CalendarSynchronizer: thin orchestrator that wires adapters to the engine.
"""

import logging

from outlook_google_sync.db import MirrorDatabase
from outlook_google_sync.google_client import GoogleCalendarClient
from outlook_google_sync.graph_client import GraphAuth
from outlook_google_sync.graph_client import GraphCalendarReader
from outlook_google_sync.models import SyncConfig
from outlook_google_sync.models import SyncReport
from outlook_google_sync.sync.clear import perform_clear
from outlook_google_sync.sync.engine import ReconciliationEngine


class CalendarSynchronizer:
    """Main synchronization entry point."""

    def __init__(self, config: SyncConfig):
        self.config = config
        self.logger = logging.getLogger(__name__)
        self._reader: GraphCalendarReader | None = None
        self._remote: GoogleCalendarClient | None = None

    def _connect(self) -> tuple[GraphCalendarReader, GoogleCalendarClient]:
        # Clients are built once and reused across scheduler passes.
        if self._reader is None:
            self.logger.info("Connecting to Microsoft 365...")
            auth = GraphAuth(
                client_id=self.config.m365_client_id,
                tenant_id=self.config.m365_tenant_id,
                client_secret=self.config.m365_client_secret,
                token_cache_path=self.config.token_cache_path,
            )
            self._reader = GraphCalendarReader(
                auth,
                timezone=self.config.timezone,
                calendar_id=self.config.outlook_calendar_id,
                user=self.config.m365_user,
            )
        if self._remote is None:
            self.logger.info("Connecting to Google Calendar...")
            remote = GoogleCalendarClient(
                self.config.google_calendar_id,
                self.config.google_credentials,
                subject=self.config.google_subject,
            )
            remote.connect()
            self._remote = remote
        return self._reader, self._remote

    def run(self) -> SyncReport:
        """Execute one synchronization pass."""
        reader, remote = self._connect()

        # The mirror is reopened every pass so no state survives between passes
        # other than what was committed.
        with MirrorDatabase(self.config.state_db_path) as mirror:
            engine = ReconciliationEngine(
                reader,
                mirror,
                remote,
                timezone=self.config.timezone,
                dry_run=self.config.dry_run,
            )
            return engine.sync()

    def clear(self) -> SyncReport:
        """Remove every tracked event from Google and the mirror."""
        _, remote = self._connect()
        with MirrorDatabase(self.config.state_db_path) as mirror:
            return perform_clear(mirror, remote, self.logger, dry_run=self.config.dry_run)
