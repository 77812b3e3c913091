import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Single listen port for HTTP + websocket traffic
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '8080'))
    # Match rules
    STARTING_HEALTH = int(os.environ.get('STARTING_HEALTH', '7'))
    DAMAGE_CAP = int(os.environ.get('DAMAGE_CAP', '7'))
    # Pause between round_end and the next deal (seconds)
    ROUND_TRANSITION_DELAY_SEC = float(os.environ.get('ROUND_TRANSITION_DELAY_SEC', '3'))
    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'CORS_ALLOWED_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174,http://127.0.0.1:5174',
        ).split(',')
        if origin.strip()
    ]
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
