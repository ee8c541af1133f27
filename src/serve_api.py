"""
Run the CryptoPunks HTTP API.

Serves over HTTPS when SSL_KEY and SSL_CERT are both set, plain HTTP
otherwise, on PORT (default 1337).
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn

from src.config.config_module import ConfigError, load_config
from src.config.logger_module import initialize_logger, log_error, log_info
from src.config.settings import Settings
from src.punks.punks_api import build_app_from_settings
from src.resolver.resolver_errors import PersistenceError


def main():
    """Run the API server."""
    load_config()

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        print(f"❌ Configuration error: {e}")
        sys.exit(1)

    initialize_logger(log_level=settings.log_level, log_file=settings.log_file)

    try:
        app = build_app_from_settings(settings)
    except (ConfigError, PersistenceError, OSError, ValueError) as e:
        log_error(f"Failed to start API: {e}")
        sys.exit(1)

    if settings.ssl_key and settings.ssl_cert:
        log_info(f"HTTPS Server is running on port {settings.port}")
        uvicorn.run(
            app,
            host="0.0.0.0",
            port=settings.port,
            ssl_keyfile=settings.ssl_key,
            ssl_certfile=settings.ssl_cert
        )
    else:
        log_info(f"HTTP Server is running on port {settings.port}")
        uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
