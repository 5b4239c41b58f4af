import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Roster limits
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '2'))
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    MAX_ROUNDS = int(os.environ.get('MAX_ROUNDS', '5'))
    # Timers (seconds)
    COUNTDOWN_SEC = int(os.environ.get('COUNTDOWN_SEC', '5'))
    ROUND_DURATION_SEC = int(os.environ.get('ROUND_DURATION_SEC', '5'))
    # 'quorum' advances on any response while the roster sits at MIN_PLAYERS,
    # 'all_responded' waits for one response from every seated player
    RESPONSE_ADVANCE_POLICY = os.environ.get('RESPONSE_ADVANCE_POLICY', 'quorum')
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    CORS_ORIGINS = [o for o in os.environ.get('CORS_ORIGINS', '').split(',') if o] or [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    PORT = int(os.environ.get('PORT', '3000'))
