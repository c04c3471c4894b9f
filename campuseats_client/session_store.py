"""
Client side persisted state (session token, cart).
The store loads everything from its backend once, on creation,
and writes the whole state back after every change.
"""
import json
import os
from typing import Any, Dict, Optional

TOKEN_KEY = 'token'
USER_KEY = 'user'
CART_KEY = 'cart'


class MemoryBackend:

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self.saved: Dict[str, Any] = dict(initial or {})
        self.save_count = 0

    def load(self) -> Dict[str, Any]:
        return json.loads(json.dumps(self.saved))

    def save(self, state: Dict[str, Any]) -> None:
        self.saved = json.loads(json.dumps(state))
        self.save_count += 1


class JsonFileBackend:

    def __init__(self, path: str):
        self.path = path

    def load(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, 'r', encoding='utf-8') as f:
            try:
                state = json.load(f)
            except ValueError:
                return {}
        return state if isinstance(state, dict) else {}

    def save(self, state: Dict[str, Any]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        tmp_path = f'{self.path}.tmp'
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(state, f)
        os.replace(tmp_path, self.path)


class SessionStore:

    def __init__(self, backend=None):
        self.backend = backend if backend is not None else MemoryBackend()
        self._state: Dict[str, Any] = self.backend.load()

    def get(self, key: str, default: Any = None) -> Any:
        return self._state.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._state[key] = value
        self._persist()

    def delete(self, key: str) -> None:
        if key in self._state:
            del self._state[key]
            self._persist()

    def clear(self) -> None:
        self._state = {}
        self._persist()

    def _persist(self) -> None:
        self.backend.save(self._state)
