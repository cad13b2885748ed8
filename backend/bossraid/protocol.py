"""Socket.IO event names shared with the game client."""

# Client -> server
JOIN_ROOM = 'client:joinRoom'
SELECT_JOB = 'client:selectJob'
SET_READY = 'client:setReady'
PLAYER_MOVE = 'client:playerMove'
PLAYER_ATTACK = 'client:playerAttack'

# Server -> client
JOIN_ROOM_SUCCESS = 'server:joinRoomSuccess'
ROOM_UPDATE = 'server:roomUpdate'
GAME_START = 'server:gameStart'
GAME_STATE_UPDATE = 'server:gameStateUpdate'
GAME_OVER = 'server:gameOver'
PLAYER_DISCONNECTED = 'server:playerDisconnected'
PLAYER_ATTACK_FEEDBACK = 'server:playerAttackFeedback'
BOSS_DAMAGED = 'server:bossDamaged'
ERROR_MESSAGE = 'server:errorMessage'

# Room states
LOBBY = 'lobby'
GAME = 'game'
RESULT = 'result'

# Outcomes
WIN = 'win'
LOSE = 'lose'

ATTACK_NORMAL = 'normal'
ATTACK_SKILL = 'skill'
