import threading
from typing import Dict, List, Optional, Tuple

from .room import Room


class RoomRegistry:
    """Room code -> Room, plus a connection -> room code index.

    The registry lock only guards the two maps and is never held while a
    room lock is taken, so rooms never contend through it.
    """

    def __init__(self):
        self._rooms: Dict[str, Room] = {}
        self._members: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, code: str) -> Optional[Room]:
        with self._lock:
            return self._rooms.get(code)

    def get_or_create(self, code: str, host_id: str) -> Tuple[Room, bool]:
        with self._lock:
            room = self._rooms.get(code)
            if room is not None and not room.closed:
                return room, False
            room = Room(code, host_id)
            self._rooms[code] = room
            return room, True

    def discard(self, room: Room) -> bool:
        """Drop ``room`` unless the code has since been taken by a new room."""
        with self._lock:
            if self._rooms.get(room.code) is room:
                del self._rooms[room.code]
                return True
            return False

    def claim(self, sid: str, code: str) -> Optional[str]:
        """Bind a connection to a room code.

        Returns None on success, or the code the connection is already
        bound to.
        """
        with self._lock:
            current = self._members.get(sid)
            if current is not None:
                return current
            self._members[sid] = code
            return None

    def release(self, sid: str) -> Optional[str]:
        with self._lock:
            return self._members.pop(sid, None)

    def room_code_for(self, sid: str) -> Optional[str]:
        with self._lock:
            return self._members.get(sid)

    def rooms(self) -> List[Room]:
        with self._lock:
            return list(self._rooms.values())

    def __len__(self):
        with self._lock:
            return len(self._rooms)

    def __contains__(self, code):
        with self._lock:
            return code in self._rooms
