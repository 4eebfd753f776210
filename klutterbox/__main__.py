"""Run the server: ``python -m klutterbox``.

Serves plain HTTP on ``PORT``. When both ``SSL_KEY_FILE`` and ``SSL_CERT_FILE``
exist it also serves HTTPS on ``SSL_PORT`` (phone cameras need a secure origin).
"""
import asyncio
import logging
from typing import List

import uvicorn

from klutterbox.config import settings
from klutterbox.logging_config import configure_logging

logger = logging.getLogger("klutterbox")

APP = "klutterbox.main:app"


def server_configs() -> List[uvicorn.Config]:
    """One uvicorn config per listener: HTTP always, HTTPS when certificates exist."""
    log_level = settings.LOG_LEVEL.lower()
    configs = [uvicorn.Config(APP, host=settings.HOST, port=settings.PORT, log_level=log_level)]
    logger.info("Serving HTTP at http://%s:%d", settings.HOST, settings.PORT)

    key_file, cert_file = settings.SSL_KEY_FILE, settings.SSL_CERT_FILE
    if key_file and cert_file:
        if key_file.is_file() and cert_file.is_file():
            configs.append(uvicorn.Config(
                APP,
                host=settings.HOST,
                port=settings.SSL_PORT,
                log_level=log_level,
                ssl_keyfile=str(key_file),
                ssl_certfile=str(cert_file),
            ))
            logger.info("Serving HTTPS at https://%s:%d", settings.HOST, settings.SSL_PORT)
        else:
            logger.warning("SSL_KEY_FILE/SSL_CERT_FILE not found; serving plain HTTP only")
    return configs


async def serve(configs: List[uvicorn.Config]) -> None:
    servers = [uvicorn.Server(config) for config in configs]
    await asyncio.gather(*(server.serve() for server in servers))


def main():
    configure_logging(settings.LOG_LEVEL)
    asyncio.run(serve(server_configs()))


if __name__ == "__main__":
    main()
