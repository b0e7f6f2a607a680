"""Writing the monitor section into the runtime settings document."""

import json
import shutil
from pathlib import Path
from typing import Optional

from .._utils import logger, timestamp_now
from .models import MonitorSettings

SECTION_KEY = "MonitorSettings"


def write_monitor_settings(path: Path, settings: MonitorSettings, timestamp: Optional[str] = None) -> Optional[Path]:
    """Replace the MonitorSettings key of the JSON document at path.

    The previous document is copied to ``<path>.backup.<timestamp>`` first;
    the copy's path is returned, or None when the document did not exist.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    backup = None
    if path.exists():
        backup = path.with_name(f"{path.name}.backup.{timestamp or timestamp_now()}")
        shutil.copy2(path, backup)
        logger.info(f"Backed up {path} to {backup}")
        text = path.read_text().strip()
        document = json.loads(text) if text else {}
    else:
        document = {}

    document[SECTION_KEY] = settings.to_document()
    path.write_text(json.dumps(document, indent=2) + "\n")
    logger.info(f"Wrote {SECTION_KEY} to {path}")
    return backup
