"""
WSGI entry point: ``gunicorn run:app`` or ``python run.py`` for local work.

FLASK_ENV picks the config class and defaults to production, so a container
that forgets to set it still gets the strict startup checks.
"""
import os
import sys

from rewardcircle import create_app

config_name = os.getenv('FLASK_ENV', 'production')

try:
    app = create_app(config_name)
except RuntimeError as e:
    # Startup validation failures; print plainly so they show in platform logs
    print(f"[RewardCircle] Refusing to start ({config_name}): {e}", file=sys.stderr)
    sys.exit(1)

if __name__ == '__main__':
    app.run(
        host=os.getenv('HOST', '127.0.0.1'),
        port=int(os.getenv('PORT', '5000')),
        debug=config_name == 'development',
    )
