
# persists the snapshot document for downstream consumers (the dashboard).

# The file is replaced atomically: write to a temp file in the same
# directory, then os.replace. A reader never sees a half-written document,
# and the previous run's output is overwritten wholesale, never merged.

import json
import logging
import os
import tempfile
from pathlib import Path

from service_health.models import HealthSnapshot

log = logging.getLogger(__name__)


def write_snapshot(snapshot: HealthSnapshot, path: str | os.PathLike[str]) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False)

    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(payload)
            fh.write("\n")
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    log.debug("Wrote snapshot to %s (%d bytes)", target, len(payload))
    return target
