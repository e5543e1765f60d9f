"""Issue migration: upsert Jira issues and their sub-entities into OpenProject.

Issues are processed strictly one after another, oldest first. For every
issue the existing work package is looked up by Jira key, then either
skipped, updated or created, and afterwards attachments, comments and
watchers are synced. A failure is confined to the issue it happened on;
the run itself always completes and reports a summary.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

from src import config
from src.clients.exceptions import ApiError
from src.config import logger
from src.display import ProgressTracker, print_run_summary
from src.mappings.mappings import IdentityMap, LookupTables
from src.models import MigrationError, RunSummary
from src.models.mapping import WorkPackageTranslator
from src.type_definitions import (
    IssueIndex,
    MigrationOptions,
    SourceIssue,
    TargetWorkItem,
    WorkPackagePayload,
)
from src.utils import data_handler
from src.utils.dedup import attachment_exists, comment_exists, format_comment
from src.utils.file_manager import FileManager
from src.utils.remediation import (
    WATCHER_IDENTITY_ATTRIBUTES,
    WORK_PACKAGE_IDENTITY_ATTRIBUTES,
    MembershipRemediator,
)

if TYPE_CHECKING:
    from src.clients.jira_client import JiraClient
    from src.clients.openproject_client import OpenProjectClient


class IssueMigration:
    """Sync the issues of one Jira project into one OpenProject project.

    Args:
        jira_client: Source of issues, watchers and attachment content
        op_client: OpenProject REST client
        identity_map: Jira account id to OpenProject user id
        lookups: Type/status/priority tables; fetched from OpenProject on
            the first run when not given
        file_manager: Temporary storage for attachment transfer
        timezone: IANA zone used to render comment timestamps
        results_dir: Where the Jira key to work package index is written

    """

    def __init__(
        self,
        jira_client: JiraClient,
        op_client: OpenProjectClient,
        identity_map: IdentityMap,
        *,
        lookups: LookupTables | None = None,
        file_manager: FileManager | None = None,
        timezone: str | None = None,
        results_dir: Path | None = None,
    ) -> None:
        self.jira_client = jira_client
        self.op_client = op_client
        self.identity_map = identity_map
        self.lookups = lookups
        self.file_manager = file_manager or FileManager()
        self.timezone = timezone or config.migration_config.get("timezone", "UTC")
        self.results_dir = results_dir

    def _load_lookups(self) -> LookupTables:
        if self.lookups is None:
            aliases = {
                "type": config.migration_config.get("type_mapping") or {},
                "status": config.migration_config.get("status_mapping") or {},
                "priority": config.migration_config.get("priority_mapping") or {},
            }
            self.lookups = LookupTables.from_openproject(self.op_client, aliases)
        return self.lookups

    def _fetch_issues(self, project_key: str, options: MigrationOptions) -> list[SourceIssue]:
        if options.specific_issues:
            return self.jira_client.get_specific_issues(project_key, options.specific_issues)
        return self.jira_client.get_all_issues_for_project(project_key)

    def migrate(
        self,
        project_key: str,
        op_project_id: int | str,
        options: MigrationOptions | None = None,
    ) -> IssueIndex:
        """Run the migration and return the Jira key to work package id index."""
        options = options or MigrationOptions()
        summary = RunSummary(project_key=project_key, op_project_id=op_project_id)

        lookups = self._load_lookups()
        translator = WorkPackageTranslator(
            lookups,
            self.identity_map,
            op_project_id,
            self.op_client.jira_key_field_id,
            map_responsible=options.map_responsible,
        )
        remediator = MembershipRemediator(self.op_client, op_project_id)

        cache: dict[str, TargetWorkItem] | None = None
        if options.skip_updates:
            logger.info("Caching OpenProject work packages...")
            cache = self.op_client.get_work_packages_by_jira_key(op_project_id)
            logger.info("Found %d work packages in OpenProject", len(cache))

        issues = self._fetch_issues(project_key, options)
        logger.notice(
            "Found %d Jira issues to process, oldest first", len(issues)
        )

        try:
            with ProgressTracker(f"Issues for {project_key}", len(issues)) as tracker:
                for issue in tracker.track(issues):
                    tracker.add_log_item(issue.key)
                    self._process_issue(
                        issue, op_project_id, translator, remediator, cache, summary
                    )
        finally:
            self.file_manager.cleanup()

        summary.finish()
        print_run_summary(summary)
        self._save_index(summary)
        return dict(summary.issue_map)

    def _process_issue(
        self,
        issue: SourceIssue,
        op_project_id: int | str,
        translator: WorkPackageTranslator,
        remediator: MembershipRemediator,
        cache: dict[str, TargetWorkItem] | None,
        summary: RunSummary,
    ) -> None:
        """Bring one issue to a terminal state: done, skipped or errored."""
        logger.info("Processing %s...", issue.key)
        payload: WorkPackagePayload | None = None
        try:
            if cache is not None:
                existing = cache.get(issue.key)
                if existing is not None:
                    logger.info(
                        "Skipping %s - already exists as work package %s", issue.key, existing.id
                    )
                    summary.record_skipped(issue.key, existing.id)
                    return
            else:
                existing = self.op_client.find_work_package_by_jira_key(issue.key, op_project_id)

            assignee_id, responsible_id = translator.resolve_identities(issue)
            payload = translator.translate(issue)

            if existing is not None:
                logger.info("Updating existing work package %s", existing.id)
                work_package = self.op_client.update_work_package(existing.id, payload)
            else:
                logger.info("Creating new work package")
                work_package = remediator.run(
                    lambda: self.op_client.create_work_package(op_project_id, payload),
                    dict(zip(WORK_PACKAGE_IDENTITY_ATTRIBUTES, (assignee_id, responsible_id), strict=True)),
                )

            summary.issue_map[issue.key] = work_package.id

            self._sync_attachments(issue, work_package.id)
            self._sync_comments(issue, work_package.id)
            self._sync_watchers(issue, work_package.id, remediator)

            summary.record_done()
        except Exception as e:  # noqa: BLE001
            logger.error("Error processing %s: %s", issue.key, e)  # noqa: TRY400
            if isinstance(e, ApiError) and e.payload:
                logger.error("Error details:\n%s", json.dumps(e.payload, indent=2))
            if payload is not None:
                logger.debug("Payload for %s:\n%s", issue.key, json.dumps(payload, indent=2))
            summary.record_error(issue.key)

    def _sync_attachments(self, issue: SourceIssue, work_package_id: int) -> None:
        if not issue.attachments:
            return

        existing = list(self.op_client.get_attachments(work_package_id))
        for attachment in issue.attachments:
            if attachment_exists(attachment.filename, existing):
                logger.info("Skipping existing attachment: %s", attachment.filename)
                continue

            logger.info("Processing attachment: %s", attachment.filename)
            with self.file_manager.temporary_file(attachment.filename) as temp_path:
                self.jira_client.download_attachment(attachment.content_url, temp_path)
                self.op_client.upload_attachment(work_package_id, temp_path, attachment.filename)
            existing.append({"fileName": attachment.filename})

    def _sync_comments(self, issue: SourceIssue, work_package_id: int) -> None:
        if not issue.comments:
            return

        existing = list(self.op_client.get_comments(work_package_id))
        for comment in issue.comments:
            rendered = format_comment(comment, self.timezone)
            if not rendered:
                continue
            if comment_exists(rendered, existing):
                logger.debug("Skipping existing comment on %s", issue.key)
                continue
            self.op_client.add_comment(work_package_id, rendered)
            existing.append({"comment": {"raw": rendered}})

    def _sync_watchers(
        self, issue: SourceIssue, work_package_id: int, remediator: MembershipRemediator
    ) -> None:
        if issue.watch_count <= 0:
            return

        logger.info("Adding watchers")
        (attribute,) = WATCHER_IDENTITY_ATTRIBUTES
        for watcher in self.jira_client.get_issue_watchers(issue.key):
            watcher_id = self.identity_map.resolve(watcher)
            if watcher_id is None:
                continue
            remediator.run(
                lambda user_id=watcher_id: self.op_client.add_watcher(work_package_id, user_id),
                {attribute: watcher_id},
            )

    def _save_index(self, summary: RunSummary) -> None:
        filename = f"work_package_mapping_{summary.project_key}.json"
        try:
            data_handler.save_results(summary.issue_map, filename, self.results_dir)
        except MigrationError as e:
            logger.warning("Could not save work package mapping: %s", e.message)
