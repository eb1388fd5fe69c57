import asyncio
import logging
import os

from http_server.request import Request
from http_server.response import Response, response
from http_server.server import HTTPServer
from kvts.engine import FileStorer
from kvts.interfaces import Storer
from kvts.models import InvalidKeyError, InvalidValueError, Sequence, StorageError
from kvts.models.sequence import parse_timestamp

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger()


def env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw not in ("0", "false", "no", "off")


async def main():
    storage_dir = os.environ.get("KVTS_STORAGE_DIR", "store")
    server = HTTPServer(
        host=os.environ.get("KVTS_HOST", "0.0.0.0"),
        port=int(os.environ.get("KVTS_PORT", "8080")),
    )

    async with FileStorer(storage_dir, sync=env_flag("KVTS_SYNC_WRITES", True)) as storer:
        logger.info(f"Storing sequences under {storer.storage_dir}")
        await register_routes(server, storer)
        logger.debug(f"Registered routes: {sorted(server.routes)}")
        await server.start()


async def register_routes(server: HTTPServer, storer: Storer):

    @server.route('/', ['PUT'])
    async def put_sequence(request: Request) -> Response:
        body = request.json()
        if body is None:
            return response(status_code=400).error("Request body must be a JSON object")

        key = body.get("key", "")
        value = body.get("value", "")
        timestamp = body.get("timestamp", 0)

        if not isinstance(key, str) or not key.strip():
            return response(status_code=400).error("Missing 'key' in request body")
        if not isinstance(value, str):
            return response(status_code=400).error("'value' must be a string")
        if isinstance(timestamp, bool) or not isinstance(timestamp, int):
            return response(status_code=400).error("'timestamp' must be an integer")

        try:
            sequence = Sequence(key=key, value=value, timestamp=timestamp)
        except (InvalidKeyError, InvalidValueError) as e:
            return response(status_code=400).error(str(e))

        try:
            await storer.save(sequence)
        except (StorageError, OSError) as e:
            logger.error(f"Failed to save {key!r}@{timestamp}: {e}")
            return response(status_code=500).error(str(e))

        return response(status_code=201).json({"message": "sequence saved successfully"})

    @server.route('/', ['GET'])
    async def get_sequence(request: Request) -> Response:
        key = request.query("key", "")
        raw_timestamp = request.query("timestamp")

        try:
            timestamp = parse_timestamp(raw_timestamp)
        except ValueError as e:
            return response(status_code=400).error(str(e))

        try:
            value = await storer.get(key, timestamp)
        except InvalidKeyError as e:
            return response(status_code=400).error(str(e))
        except (StorageError, OSError) as e:
            # Unknown keys land here too and surface as a server error
            return response(status_code=500).error(str(e))

        return response(status_code=200).json({"value": value})


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
