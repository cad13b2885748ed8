import os


def _csv(value):
    return [item.strip() for item in value.split(',') if item.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '3000'))
    CORS_ALLOWED_ORIGINS = _csv(os.environ.get(
        'CORS_ALLOWED_ORIGINS',
        'http://localhost:8080,http://127.0.0.1:8080,http://localhost:5173,http://127.0.0.1:5173',
    ))
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Simulation tick (milliseconds). 33ms is roughly 30Hz.
    TICK_INTERVAL_MS = int(os.environ.get('TICK_INTERVAL_MS', '33'))
    # Balance knobs; jobs, skills and boss patterns can be overridden with
    # RAID_JOBS / RAID_SKILLS / RAID_BOSS_PATTERNS dicts on a subclass.
    PLAYFIELD_WIDTH = float(os.environ.get('PLAYFIELD_WIDTH', '800'))
    PLAYFIELD_HEIGHT = float(os.environ.get('PLAYFIELD_HEIGHT', '600'))
    PLAYER_MAX_HP = int(os.environ.get('PLAYER_MAX_HP', '100'))
    PLAYER_SPEED = float(os.environ.get('PLAYER_SPEED', '150'))
    BOSS_MAX_HP = int(os.environ.get('BOSS_MAX_HP', '1000'))
    BOSS_PHASE_THRESHOLDS = [float(v) for v in _csv(os.environ.get('BOSS_PHASE_THRESHOLDS', '0.66,0.33'))]
