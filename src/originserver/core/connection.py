"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket: read one request head, write one
response, close.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

A request can arrive in any number of recv() chunks:

    First recv():  "POST /scripts/ec"
    Second recv(): "ho HTTP/1.1\\r\\nHost: ..."
    Third recv():  "\\r\\n\\r\\n"

So we buffer until we see the blank line that ends the headers. We stop
there: the body (if any) is never read, because scripts don't get it.

=============================================================================
ONE REQUEST PER CONNECTION
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► CLOSING ──► CLOSED

No keep-alive, no pipelining. After the response is written the
connection is closed, whatever the client asked for.

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional


logger = logging.getLogger(__name__)

HEADER_TERMINATORS = (b"\r\n\r\n", b"\n\n")


class ConnectionState(Enum):
    """Connection lifecycle states, for logging and debugging."""
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier for log lines.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
        buffer_size: Bytes per recv() call.
        max_request_size: Stop reading the head after this many bytes.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 8192
    max_request_size: int = 8192

    def __post_init__(self):
        # Blocking, no timeout: a slow client holds only its own thread
        self.socket.setblocking(True)

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    def read_request(self) -> Optional[bytes]:
        """
        Read one request head from the socket.

        Reads until one of:
            - the header terminator (\\r\\n\\r\\n, or \\n\\n from sloppy clients)
            - EOF from the client
            - max_request_size bytes

        Whatever was read is returned; the parser decides whether it's a
        valid request. A request line is always within the first bytes,
        so hitting the size limit still leaves something parseable.

        Returns:
            Raw request bytes, or None if the client sent nothing at all.
        """
        self.state = ConnectionState.READING
        buffer = b""

        while len(buffer) < self.max_request_size:
            chunk = self._recv(min(self.buffer_size, self.max_request_size - len(buffer)))
            if not chunk:
                break  # Client closed its side

            buffer += chunk
            if any(term in buffer for term in HEADER_TERMINATORS):
                break

        self.state = ConnectionState.PROCESSING
        return buffer or None

    def _recv(self, size: int) -> bytes:
        """
        Receive data from the socket.

        Returns empty bytes if the client disconnected abruptly.
        """
        try:
            return self.socket.recv(size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    def send_response(self, data: bytes) -> bool:
        """
        Send response data to the client.

        Uses sendall() so the whole response is written or the send fails.

        Returns:
            True if send succeeded, False if the connection was lost.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): send FIN, the response is complete
        2. drain: read what the client still sends (an unread POST body),
           otherwise close() could turn into a RST that destroys the
           response before the client read it
        3. close(): release the file descriptor
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:  # socket.timeout is an OSError
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure connection is closed."""
        self.close()
        return False  # Don't suppress exceptions
