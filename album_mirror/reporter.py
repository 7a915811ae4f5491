"""Reporting for album mirroring runs."""

import json
import logging
from pathlib import Path
from typing import Optional

from .config import Config
from .summary import CANCELLED, FAILED, SKIPPED, SYNCED, RunSummary
from .utils import ensure_directory, format_bytes, get_current_timestamp

logger = logging.getLogger(__name__)


class MirrorReporter:
    """Generates the end-of-run summary and JSON reports."""

    def __init__(self, config: Config):
        self.config = config

    def generate_summary_report(self, summary: RunSummary) -> str:
        """
        Generate human-readable summary report.

        Args:
            summary: Summary of a finished run

        Returns:
            Formatted summary report
        """
        report = []
        report.append("=" * 50)
        report.append("ALBUM MIRROR SUMMARY")
        report.append("=" * 50)
        report.append(f"Mode: {'DRY RUN' if summary.dry_run else 'LIVE RUN'}")
        report.append(f"Target: {self.config.get_sync_root()}")
        report.append("")

        report.append("=== ALBUMS ===")
        report.append(f"• Synced: {summary.count(SYNCED):,}")
        report.append(f"• Skipped (timestamp match): {summary.count(SKIPPED):,}")
        report.append(f"• Failed: {summary.count(FAILED):,}")
        if summary.count(CANCELLED):
            report.append(f"• Cancelled: {summary.count(CANCELLED):,}")
        report.append("")

        removed = sum(r.removed for r in summary.results)
        report.append("=== FILES ===")
        report.append(f"• {'Would download' if summary.dry_run else 'Downloaded'}: "
                      f"{summary.file_count:,} files ({format_bytes(summary.total_bytes)})")
        report.append(f"• Unchanged: {sum(r.unchanged for r in summary.results):,}")
        report.append(f"• {'Would remove' if summary.dry_run else 'Removed'}: {removed:,}")
        report.append(f"• Elapsed: {summary.elapsed:.1f}s")

        if summary.failed:
            report.append("")
            report.append("=== FAILURES ===")
            for result in summary.failed:
                report.append(f"✗ {result.error}")

        report.append("=" * 50)
        return "\n".join(report)

    def save_report(self, summary: RunSummary, output_file: Optional[str] = None) -> Path:
        """
        Write the run summary as JSON.

        Args:
            summary: Summary of a finished run
            output_file: Destination; defaults to the log directory, or the
                working directory when no log directory is configured

        Returns:
            Path of the written report
        """
        if output_file:
            report_path = Path(output_file)
        else:
            log_dir = self.config.get_log_dir() or Path.cwd()
            report_path = log_dir / f"mirror_{get_current_timestamp().replace(':', '-')}.json"

        ensure_directory(report_path.parent)
        data = summary.to_dict()
        data['timestamp'] = get_current_timestamp()
        data['sync_root'] = str(self.config.get_sync_root())

        with open(report_path, 'w') as f:
            json.dump(data, f, indent=2)
        logger.info(f"Report saved: {report_path}")
        return report_path
