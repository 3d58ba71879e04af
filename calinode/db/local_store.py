"""Local key-value fallback storage

Each user gets one JSON file under DATA_PATH holding the last saved copy
of every record, keyed by fixed names. It is written on every save and read
when the remote store is unreachable or has no document.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from calinode.config import DATA_PATH
from calinode.resilience.metrics import record_store_operation

logger = logging.getLogger(__name__)

CAPABILITY_PROFILE_KEY = "userCapabilityProfile"
USER_PROGRESS_KEY = "userProgress"
STREAK_DATA_KEY = "streakData"
DAILY_QUESTS_KEY = "dailyQuests"


class LocalKeyValueStore:
    """Per-user JSON file of string keys to JSON payloads"""

    name = "local"

    def __init__(self, data_path: Path = DATA_PATH):
        self.data_path = Path(data_path)

    def get_user_file(self, user_id: str) -> Path:
        """Get user's local store file"""
        return self.data_path / user_id / "local_store.json"

    def _read_all(self, user_id: str) -> Dict[str, Any]:
        filepath = self.get_user_file(user_id)
        if not filepath.exists():
            return {}
        try:
            content = json.loads(filepath.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.error(f"Local store for {user_id} is corrupt, ignoring it: {e}")
            return {}
        return content if isinstance(content, dict) else {}

    def _write_all(self, user_id: str, content: Dict[str, Any]) -> None:
        filepath = self.get_user_file(user_id)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = filepath.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(content, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp_path.replace(filepath)

    async def get(self, user_id: str, key: str) -> Optional[Any]:
        """Stored payload for key, or None"""
        value = self._read_all(user_id).get(key)
        record_store_operation(self.name, "get", success=True)
        return value

    async def set(self, user_id: str, key: str, value: Any) -> None:
        """Store a JSON-serializable payload under key"""
        try:
            content = self._read_all(user_id)
            content[key] = value
            self._write_all(user_id, content)
            record_store_operation(self.name, "set", success=True)
            logger.debug(f"Saved {key} to local store for {user_id}")
        except OSError:
            record_store_operation(self.name, "set", success=False)
            raise

    async def remove(self, user_id: str, key: str) -> None:
        """Remove key (no-op when absent)"""
        content = self._read_all(user_id)
        if key in content:
            del content[key]
            self._write_all(user_id, content)
            logger.info(f"Removed {key} from local store for {user_id}")
