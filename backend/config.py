import os


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    CORS_ORIGINS = [
        o.strip() for o in os.environ.get(
            'CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000'
        ).split(',') if o.strip()
    ]
    # Room defaults applied when the creator does not pick them
    DEFAULT_BOARD_SIZE = int(os.environ.get('DEFAULT_BOARD_SIZE', '5'))
    DEFAULT_MAX_PLAYERS = int(os.environ.get('DEFAULT_MAX_PLAYERS', '2'))
    MAX_PLAYERS_LIMIT = int(os.environ.get('MAX_PLAYERS_LIMIT', '4'))
    ROOM_CODE_LENGTH = int(os.environ.get('ROOM_CODE_LENGTH', '4'))
    NICKNAME_MAX_LENGTH = int(os.environ.get('NICKNAME_MAX_LENGTH', '20'))
    # Minimum players to start a game
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    # Below this many players a running game ends as abandoned
    MIN_PLAYERS_TO_CONTINUE = int(os.environ.get('MIN_PLAYERS_TO_CONTINUE', '2'))
    # When False the host counts as ready implicitly
    HOST_MUST_BE_READY = _env_bool('HOST_MUST_BE_READY', False)
    # Client reconnect backoff (milliseconds)
    RECONNECT_BASE_DELAY_MS = int(os.environ.get('RECONNECT_BASE_DELAY_MS', '1000'))
    RECONNECT_MAX_DELAY_MS = int(os.environ.get('RECONNECT_MAX_DELAY_MS', '10000'))
    RECONNECT_MAX_ATTEMPTS = int(os.environ.get('RECONNECT_MAX_ATTEMPTS', '6'))
