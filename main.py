#!/usr/bin/env python3
"""
Back-Office Pending Resolution - Main Entry Point

Starts the Quart web server in front of the back-office REST API.
"""

import asyncio
import logging
from typing import Optional
from templates.web_server import app
from tools.backoffice.resolution.config import config

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def server_url(host: str, port: int) -> str:
    return f'http://{host}:{port}'


async def run_server(host: Optional[str] = None, port: Optional[int] = None):
    """Run the Quart web server"""
    host = host or config.host
    port = port or config.port

    logger.info('='*60)
    logger.info('Back-Office Pending Resolution')
    logger.info('='*60)
    logger.info(f'Starting server on {server_url(host, port)}')
    logger.info(f'Back-office API: {config.api_url}')
    logger.info('Press CTRL+C to quit')
    logger.info('='*60)

    await app.run_task(host=host, port=port, debug=config.debug)


def main():
    """Main entry point"""
    try:
        asyncio.run(run_server())
    except KeyboardInterrupt:
        logger.info('\nServer stopped by user')
    except Exception as e:
        logger.error(f'Error running server: {e}')
        raise


if __name__ == '__main__':
    main()
