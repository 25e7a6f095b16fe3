"""
Multi-format rendering of run results for today.

Text is the standup-friendly default; Markdown and JSON are provided for
pasting into notes or feeding other tools.
"""

from __future__ import annotations

import json
import logging
from typing import Dict, List, Optional

from today.config import OUTPUT_FORMATS, OutputConfig
from today.types import RunResult

logger = logging.getLogger(__name__)


class Exporter:
    """
    Service for rendering a RunResult in one of the supported formats.

    Every requested directory appears in the output, including directories
    with no matching commits.
    """

    def __init__(self, config: Optional[OutputConfig] = None):
        """
        Initialize the exporter.

        Args:
            config: Output configuration. If None, uses defaults.
        """
        self.config = config if config is not None else OutputConfig()

    def export(self, run_result: RunResult, format: Optional[str] = None) -> str:
        """
        Render run result in the requested format.

        Args:
            run_result: RunResult to render
            format: text, markdown or json. If None, uses the configured format.

        Returns:
            Formatted string content

        Raises:
            ValueError: If format is not supported
        """
        format_lower = (format or self.config.format).lower()
        logger.debug(f"Rendering {run_result.total_messages} messages as {format_lower}")

        if format_lower == "text":
            return self.to_text(run_result)
        elif format_lower in ("markdown", "md"):
            return self.to_markdown(run_result)
        elif format_lower == "json":
            return self.to_json(run_result)
        else:
            raise ValueError(
                f"Unsupported output format: {format} (expected one of {', '.join(OUTPUT_FORMATS)})"
            )

    def _errors_by_label(self, run_result: RunResult) -> Dict[str, List[str]]:
        errors: Dict[str, List[str]] = {}
        for result in run_result.directories:
            if result.error is not None:
                errors.setdefault(result.label, []).append(str(result.error))
        return errors

    def to_text(self, run_result: RunResult) -> str:
        """
        Render the plain terminal report.

        Each directory label is followed by its messages, one per indented
        line, and a blank line. Multi-line messages are kept verbatim.
        """
        indent = self.config.indent
        errors = self._errors_by_label(run_result)
        lines: List[str] = []

        for label, messages in run_result.messages.items():
            lines.append(label)

            for error in errors.get(label, []):
                lines.append(f"{indent}Unable to read history: {error}")
            if not messages and label not in errors:
                lines.append(f"{indent}{self.config.empty_message}")
            for message in messages:
                lines.append(f"{indent}{message}")

            # Simple newline before the next entry.
            lines.append("")

        return "\n".join(lines)

    def to_markdown(self, run_result: RunResult) -> str:
        """Render a Markdown section per directory with messages as bullets."""
        errors = self._errors_by_label(run_result)
        lines: List[str] = []

        if run_result.threshold is not None:
            lines.append(f"_Commits since {run_result.threshold.strftime('%Y-%m-%d %H:%M:%S')} UTC_")
            lines.append("")

        for label, messages in run_result.messages.items():
            lines.append(f"## {label}")
            lines.append("")

            for error in errors.get(label, []):
                lines.append(f"> Unable to read history: {error}")
            if not messages and label not in errors:
                lines.append(f"_{self.config.empty_message}_")
            for message in messages:
                # Continuation lines stay inside the bullet
                lines.append("- " + message.replace("\n", "\n  "))

            lines.append("")

        return "\n".join(lines)

    def to_json(self, run_result: RunResult) -> str:
        data = {
            "threshold": run_result.threshold.isoformat() if run_result.threshold else None,
            "total_messages": run_result.total_messages,
            "directories": [
                {
                    "label": result.label,
                    "path": str(result.path),
                    "messages": result.messages,
                    "error": str(result.error) if result.error is not None else None,
                }
                for result in run_result.directories
            ],
        }
        return json.dumps(data, indent=2, ensure_ascii=False)
