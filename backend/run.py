"""
Application entry point
Personal metrics dashboard - backend service

Usage:
    python run.py

Configuration:
    - copy env.example to .env
    - adjust the values you need
"""
import os

from dashboard import create_app
from dashboard.config import get_config

config_class = get_config()
app = create_app(config_class)

if __name__ == '__main__':
    env = os.environ.get('FLASK_ENV', 'development')
    port = int(os.environ.get('PORT', '8000'))

    if env == 'production':
        for problem in config_class.validate():
            print(f"⚠️  {problem}")

    crypto = app.extensions['credential_crypto']

    print("=" * 60)
    print("Metrics Dashboard - backend")
    print("=" * 60)
    print(f"API:            http://localhost:{port}/api")
    print(f"Environment:    {env}")
    print(f"Trusted hosts:  {', '.join(app.config['TRUSTED_HOSTS'])}")
    print(f"Sync cooldown:  {app.config['SYNC_COOLDOWN_SECONDS']:.0f}s")
    print(f"Credential encryption: {'enabled' if crypto.is_secure else 'DISABLED (set CREDENTIAL_ENCRYPTION_KEY)'}")
    print("=" * 60)

    # Bind to loopback only; the CSRF model assumes a local deployment
    app.run(host='127.0.0.1', port=port, debug=(env == 'development'), use_reloader=False)
