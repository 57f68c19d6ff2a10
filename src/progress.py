import threading
import time
from typing import List, Dict, Optional

_lock = threading.Lock()
_entries: Dict[str, List[dict]] = {}

def start(request_id: str) -> None:
    with _lock:
        _entries[request_id] = []

def append(request_id: str, message: str, stage: Optional[str] = None) -> None:
    if not request_id:
        return
    entry = {"time": time.time(), "stage": stage, "message": message}
    with _lock:
        _entries.setdefault(request_id, []).append(entry)

def entries(request_id: str) -> List[dict]:
    """Full progress records (time, stage, message) for one generation request."""
    with _lock:
        return [dict(e) for e in _entries.get(request_id, [])]

def get(request_id: str, since: int = 0) -> List[str]:
    with _lock:
        messages = [e["message"] for e in _entries.get(request_id, [])]
    if since <= 0:
        return messages
    return messages[since:]

def clear(request_id: str) -> None:
    with _lock:
        _entries.pop(request_id, None)
