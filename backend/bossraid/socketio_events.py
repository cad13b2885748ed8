import math
from functools import wraps

from flask import current_app, request
from flask_socketio import emit

from bossraid import protocol, socketio
from bossraid.errors import InvalidPayload, RaidError, RoomNotFound
from bossraid.models import PendingAttack

MAX_NAME_LENGTH = 20
MAX_CODE_LENGTH = 12


def _payload(data):
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidPayload('Payload must be an object.')
    return data


def _number(data, key):
    value = data.get(key)
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidPayload(f"'{key}' must be a number.")
    value = float(value)
    if not math.isfinite(value):
        raise InvalidPayload(f"'{key}' must be finite.")
    return value


def _player_name(data):
    name = data.get('playerName')
    if not isinstance(name, str) or not name.strip():
        return 'Player'
    return name.strip()[:MAX_NAME_LENGTH]


def _room_code(data):
    code = data.get('roomCode')
    if not isinstance(code, str) or not code.strip():
        raise InvalidPayload('roomCode is required')
    code = code.strip().upper()
    if len(code) > MAX_CODE_LENGTH:
        raise InvalidPayload(f"roomCode must be at most {MAX_CODE_LENGTH} characters.")
    return code


def _direction(data):
    vx, vy = _number(data, 'vx'), _number(data, 'vy')
    length = math.hypot(vx, vy)
    if length > 1.0:
        vx, vy = vx / length, vy / length
    return vx, vy


def _attack(data):
    kind = data.get('type')
    if kind not in (protocol.ATTACK_NORMAL, protocol.ATTACK_SKILL):
        raise InvalidPayload("type must be 'normal' or 'skill'.")
    skill_id = data.get('skillId')
    if kind == protocol.ATTACK_SKILL and (not isinstance(skill_id, str) or not skill_id):
        raise InvalidPayload('skillId is required for skills.')
    return PendingAttack(
        kind=kind,
        aim_x=_number(data, 'aimX'),
        aim_y=_number(data, 'aimY'),
        skill_id=skill_id if kind == protocol.ATTACK_SKILL else None,
    )


def _guarded(event, handler):
    """Report RaidErrors to the sender only; never let them reach the server."""

    @wraps(handler)
    def wrapper(data=None):
        try:
            handler(_payload(data))
        except RoomNotFound:
            # Room vanished between lookup and use; nothing left to act on.
            current_app.logger.info(f"[drop] event={event} sid={request.sid} reason=room-gone")
        except RaidError as exc:
            current_app.logger.warning(f"[reject] event={event} sid={request.sid} code={exc.code} msg={exc.message}")
            emit(protocol.ERROR_MESSAGE, exc.to_dict())

    return wrapper


def register_socketio_handlers(service, namespace: str = '/') -> None:
    """Bind client events on ``namespace`` to ``service``."""

    def handle_connect(auth=None):
        current_app.logger.info(f"[connect] sid={request.sid}")

    def handle_disconnect(reason=None):
        current_app.logger.info(f"[disconnect] sid={request.sid} reason={reason}")
        service.disconnect(request.sid)

    def handle_join_room(data):
        service.join(request.sid, _player_name(data), _room_code(data))

    def handle_select_job(data):
        job_id = data.get('jobId')
        if not isinstance(job_id, str) or not job_id:
            raise InvalidPayload('jobId is required')
        service.select_job(request.sid, job_id)

    def handle_set_ready(data):
        is_ready = data.get('isReady')
        if not isinstance(is_ready, bool):
            raise InvalidPayload("'isReady' must be true or false.")
        service.set_ready(request.sid, is_ready)

    def handle_player_move(data):
        vx, vy = _direction(data)
        service.move(request.sid, vx, vy)

    def handle_player_attack(data):
        service.attack(request.sid, _attack(data))

    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    events = {
        protocol.JOIN_ROOM: handle_join_room,
        protocol.SELECT_JOB: handle_select_job,
        protocol.SET_READY: handle_set_ready,
        protocol.PLAYER_MOVE: handle_player_move,
        protocol.PLAYER_ATTACK: handle_player_attack,
    }
    for event, handler in events.items():
        socketio.on_event(event, _guarded(event, handler), namespace=namespace)
