"""
ROOFWATCH Park Data Persistence

Keeps the last park state in a small JSON file so it survives restarts.
A missing or unreadable file means the park state is unknown.
"""

import json
import logging
import os
from datetime import datetime
from pathlib import Path

from roofwatch.types import ParkState

logger = logging.getLogger("roofwatch.enclosure.park_store")


class ParkStore:
    """JSON file holding the roof park state."""

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()

    def load(self) -> ParkState:
        """
        Load the stored park state.

        Returns:
            Stored state, or ParkState.UNKNOWN when nothing usable is stored
        """
        if not self.path.exists():
            logger.info(f"No park data at {self.path}, park state unknown")
            return ParkState.UNKNOWN

        try:
            with open(self.path, "r") as f:
                data = json.load(f)
            state = ParkState(data["park_state"])
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable park data {self.path}: {e}")
            return ParkState.UNKNOWN

        logger.debug(f"Loaded park state {state.value} from {self.path}")
        return state

    def save(self, state: ParkState) -> bool:
        """
        Write the park state.

        Returns:
            True if written. Failures are logged, not raised; the roof keeps
            working with its in-memory state.
        """
        data = {
            "park_state": state.value,
            "updated": datetime.now().isoformat(),
        }
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Failed to save park data to {self.path}: {e}")
            return False
        return True
