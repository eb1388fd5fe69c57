import asyncio
import json
import logging
import time
from http import HTTPStatus
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlparse

from .request import Request
from .response import Response

logger = logging.getLogger()

# Seconds to wait for a request line or header line
HEADER_TIMEOUT = 5.0

# Seconds to wait for a full request body
BODY_TIMEOUT = 30.0

# Largest accepted request body (1MB)
MAX_BODY_BYTES = 1024 * 1024


class HTTPServer:
    def __init__(self, host: str = '0.0.0.0', port: int = 8080):
        self.host = host
        self.port = port
        self.routes: Dict[Tuple[str, str], Callable] = {}

    def route(self, path: str, methods: Optional[List] = None):
        """Decorator for registering route handlers"""
        if methods is None:
            methods = ['GET']

        def decorator(handler):
            for method in methods:
                self.routes[(method.upper(), path)] = handler
            return handler
        return decorator

    async def parse_request(self, reader: asyncio.StreamReader) -> Optional[Request]:
        """Read one request off the stream. None means the connection should close."""
        try:
            request_line = await asyncio.wait_for(reader.readline(), timeout=HEADER_TIMEOUT)
            if not request_line:
                return None

            method, target, version = request_line.decode('utf-8').strip().split(' ', 2)
            parsed_url = urlparse(target)

            headers = {}
            while True:
                line = await asyncio.wait_for(reader.readline(), timeout=HEADER_TIMEOUT)
                if line in (b'\r\n', b'\n', b''):
                    break
                name, sep, value = line.decode('utf-8').partition(':')
                if sep:
                    headers[name.strip().lower()] = value.strip()

            body = b''
            content_length = int(headers.get('content-length', 0))
            if content_length > MAX_BODY_BYTES:
                raise ValueError(f"Request body too large: {content_length} bytes")
            if content_length > 0:
                body = await asyncio.wait_for(
                    reader.readexactly(content_length),
                    timeout=BODY_TIMEOUT
                )

            return Request(
                method=method.upper(),
                path=parsed_url.path,
                headers=headers,
                query_params=parse_qs(parsed_url.query),
                body=body,
                version=version
            )
        except asyncio.TimeoutError:
            return None
        except (ValueError, UnicodeDecodeError, asyncio.IncompleteReadError) as e:
            logger.warning(f"Dropping malformed request: {e}")
            return None

    def build_response(self, response: Response) -> bytes:
        """Serialize a Response into HTTP/1.1 wire bytes"""
        try:
            reason = HTTPStatus(response.status).phrase
        except ValueError:
            reason = 'Unknown'

        headers = {'content-type': 'text/plain', **response.headers}
        headers['content-length'] = str(len(response.body))
        headers['connection'] = 'keep-alive'
        headers['server'] = 'KvtsHttp/1.0'

        head = f"HTTP/1.1 {response.status} {reason}\r\n" + ''.join(
            f"{name}: {value}\r\n" for name, value in headers.items()
        )
        return head.encode() + b'\r\n' + response.body

    async def handle_request(self, request: Request) -> Response:
        """Dispatch a request to its handler"""
        handler = self.routes.get((request.method, request.path))

        if handler is None:
            if any(path == request.path for _, path in self.routes):
                return Response(status=405, body=b'Method Not Allowed')
            return Response(status=404, body=b'Route Not Found')

        try:
            result = await handler(request)
        except Exception as e:
            logger.error(f"Handler error on {request.method} {request.path}: {e}")
            return Response(status=500, body=b'Internal Server Error')

        if isinstance(result, Response):
            return result
        if isinstance(result, dict):
            return Response(
                status=200,
                headers={'content-type': 'application/json'},
                body=json.dumps(result).encode()
            )
        logger.error(f"Handler for {request.method} {request.path} returned {type(result).__name__}")
        return Response(status=500, body=b'Internal Server Error')

    async def handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        """Serve requests on one connection until the client closes it"""
        peer = writer.get_extra_info('peername')

        try:
            while True:
                request = await self.parse_request(reader)
                if request is None:
                    break

                start_time = time.perf_counter()
                logger.debug(f"--> {request.method} {request.path}")

                response = await self.handle_request(request)
                writer.write(self.build_response(response))
                await writer.drain()

                elapsed_ms = (time.perf_counter() - start_time) * 1000
                logger.debug(
                    f"<-- {response.status} - {len(response.body)} bytes - {elapsed_ms:.2f}ms"
                )

                if request.headers.get('connection', '').lower() == 'close':
                    break
        except ConnectionError as e:
            logger.debug(f"Connection to {peer} lost: {e}")
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except ConnectionError:
                pass

    async def start(self):
        """Start the HTTP server and serve until cancelled"""
        server = await asyncio.start_server(self.handle_client, self.host, self.port)

        addr = server.sockets[0].getsockname()
        logger.info(f'Kvts HTTP Server running on http://{addr[0]}:{addr[1]}')

        try:
            async with server:
                await server.serve_forever()
        except asyncio.CancelledError:
            logger.info("Server shutdown requested")
        finally:
            await self.shutdown(server)

    async def shutdown(self, server: asyncio.AbstractServer):
        """Stop accepting connections and wait for the listener to close"""
        logger.info("Shutting down server...")
        server.close()
        await server.wait_closed()
        logger.info("Server shutdown complete")
