import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///rankings.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Comma-separated list of origins allowed to call the API
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    # Store backing the leaderboard and inventory: 'sql' or 'memory'
    RANKINGS_BACKEND = os.environ.get('RANKINGS_BACKEND', 'sql')
    RANKINGS_KEY = os.environ.get('RANKINGS_KEY', 'rankings')
    RANKINGS_CAPACITY = int(os.environ.get('RANKINGS_CAPACITY', '100'))
    # Conditional-write attempts per submission before giving up
    RANKINGS_MAX_ATTEMPTS = int(os.environ.get('RANKINGS_MAX_ATTEMPTS', '5'))
    # Randomized backoff between attempts (ms)
    RANKINGS_BACKOFF_BASE_MS = int(os.environ.get('RANKINGS_BACKOFF_BASE_MS', '10'))
    RANKINGS_BACKOFF_MAX_MS = int(os.environ.get('RANKINGS_BACKOFF_MAX_MS', '100'))
