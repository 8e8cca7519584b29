"""Apple Health XML export parser.

Parses the ``export.xml`` file produced by Apple Health (iOS → Share → Export
Health Data). Supports incremental parsing of large files via iterparse.

Only the record types the aggregation core queries are kept:
- HKQuantityTypeIdentifierStepCount → step samples
- HKCategoryTypeIdentifierSleepAnalysis → sleep samples (with stage tag)
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from healthtracker.domains.health.connectors import (
    Capability,
    SleepSample,
    SleepStage,
    StepSample,
)

logger = logging.getLogger(__name__)

_STEPS = Capability.STEP_COUNT.value
_SLEEP = Capability.SLEEP_ANALYSIS.value

_STAGES_BY_VALUE = {stage.value: stage for stage in SleepStage}


class AppleHealthParseError(Exception):
    """Raised when parsing Apple Health export XML fails."""


@dataclass
class HealthExport:
    """Samples extracted from one export file, in file order."""

    steps: list[StepSample] = field(default_factory=list)
    sleep: list[SleepSample] = field(default_factory=list)
    skipped: int = 0


def _parse_date(date_str: str) -> datetime:
    """Parse Apple Health date format: '2025-12-01 08:30:00 -0500'."""
    try:
        return datetime.strptime(date_str, "%Y-%m-%d %H:%M:%S %z")
    except ValueError:
        # Fallback for ISO format; naive values are local time
        parsed = datetime.fromisoformat(date_str)
        return parsed if parsed.tzinfo is not None else parsed.astimezone()


def _parse_step(elem: ET.Element) -> StepSample:
    return StepSample(
        start=_parse_date(elem.get("startDate", "")),
        end=_parse_date(elem.get("endDate", "")),
        count=float(elem.get("value", "")),
    )


def _parse_sleep(elem: ET.Element) -> SleepSample:
    return SleepSample(
        start=_parse_date(elem.get("startDate", "")),
        end=_parse_date(elem.get("endDate", "")),
        stage=_STAGES_BY_VALUE[elem.get("value", "")],
    )


def parse_apple_health_export(export_path: str | Path) -> HealthExport:
    """Parse an Apple Health export.xml into step and sleep samples.

    Uses iterparse for memory-efficient processing of large exports.
    Records with missing or malformed dates, values, or unknown sleep stage
    values are skipped and counted.

    Args:
        export_path: Path to the Apple Health export.xml file.

    Returns:
        HealthExport with step and sleep samples.

    Raises:
        AppleHealthParseError: If the file is missing or is not valid XML.
    """
    path = Path(export_path)
    if not path.exists():
        raise AppleHealthParseError(f"Export file not found: {path}")

    export = HealthExport()

    try:
        for _event, elem in ET.iterparse(str(path), events=("end",)):
            if elem.tag != "Record":
                continue

            rec_type = elem.get("type", "")
            try:
                if rec_type == _STEPS:
                    export.steps.append(_parse_step(elem))
                elif rec_type == _SLEEP:
                    export.sleep.append(_parse_sleep(elem))
            except (ValueError, TypeError, KeyError):
                export.skipped += 1

            elem.clear()

    except ET.ParseError as exc:
        raise AppleHealthParseError(f"Invalid XML: {exc}") from exc

    logger.info(
        "Parsed Apple Health export: %d step samples, %d sleep samples, %d skipped",
        len(export.steps), len(export.sleep), export.skipped,
    )
    return export
