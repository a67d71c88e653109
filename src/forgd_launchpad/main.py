from loguru import logger

from forgd_launchpad.common.logger import setup_logger
from forgd_launchpad.common.settings import settings
from forgd_launchpad.webapi.webapi import app


def main():
    setup_logger(
        json_logs=settings.json_logs,
        level=settings.log_level,
        log_file=settings.log_file,
        retention=settings.log_retention,
    )
    logger.info(f"Starting launchpad API on {settings.api_host}:{settings.api_port}")
    app.run(host=settings.api_host, port=settings.api_port, debug=settings.api_debug)


if __name__ == "__main__":
    main()
