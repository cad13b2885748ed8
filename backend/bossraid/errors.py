class RaidError(Exception):
    """Rejected client request. Reported to the sender only."""

    code = 'ERROR'
    default_message = 'Request rejected.'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {'code': self.code, 'message': self.message}


class DuplicateJoin(RaidError):
    code = 'ALREADY_IN_ROOM'
    default_message = 'You are already in this room.'


class InvalidState(RaidError):
    code = 'INVALID_STATE'
    default_message = 'Cannot do that at this time.'


class PlayerNotFound(RaidError):
    code = 'PLAYER_NOT_FOUND'
    default_message = 'You are not in any room.'


class RoomNotFound(RaidError):
    code = 'ROOM_NOT_FOUND'
    default_message = 'Room no longer exists.'


class InvalidPayload(RaidError):
    code = 'INVALID_PAYLOAD'
    default_message = 'Malformed request.'


class InvalidJob(RaidError):
    code = 'INVALID_JOB'
    default_message = 'Unknown job.'


class InvalidSkill(RaidError):
    code = 'INVALID_SKILL'
    default_message = 'Skill not available.'
