"""Listener bootstrap: systemd socket activation with a TCP fallback.

With socket activation the service manager opens the listening sockets and
passes them as file descriptors starting at 3, announced through
``LISTEN_PID`` and ``LISTEN_FDS``. When nothing was passed we bind a single
TCP listener on the configured host and port instead.
"""

import logging
import os
import socket
from collections.abc import MutableMapping

import uvicorn
from fastapi import FastAPI

from syncstream.core.errors import ErrorCode, SyncStreamError

logger = logging.getLogger(__name__)

SD_LISTEN_FDS_START = 3
_ACTIVATION_VARS = ("LISTEN_PID", "LISTEN_FDS", "LISTEN_FDNAMES")


def activated_sockets(
    unset_environment: bool = True,
    environ: MutableMapping[str, str] | None = None,
) -> list[socket.socket]:
    """Return the listening stream sockets passed by the service manager.

    Args:
        unset_environment: Drop the activation variables afterwards so child
            processes (the sync command) do not try to claim the sockets.
        environ: Environment to read. Defaults to os.environ.

    Returns:
        Sockets in fd order; empty when the process was not socket-activated.

    Raises:
        SyncStreamError: The activation variables are malformed.
    """
    env = os.environ if environ is None else environ
    try:
        pid = env.get("LISTEN_PID")
        count = env.get("LISTEN_FDS")
        if not pid or not count:
            return []
        try:
            if int(pid) != os.getpid():
                logger.debug("LISTEN_PID %s is not ours, ignoring activation", pid)
                return []
            fd_count = int(count)
        except ValueError as e:
            raise SyncStreamError(
                ErrorCode.LISTENER_ACTIVATION_FAILED,
                context={"detail": f"LISTEN_PID={pid!r} LISTEN_FDS={count!r}"},
                cause=e,
            ) from e
    finally:
        if unset_environment:
            for var in _ACTIVATION_VARS:
                env.pop(var, None)

    sockets = []
    for fd in range(SD_LISTEN_FDS_START, SD_LISTEN_FDS_START + fd_count):
        try:
            os.set_inheritable(fd, False)
            sock = socket.socket(fileno=fd)
        except OSError as e:
            raise SyncStreamError(
                ErrorCode.LISTENER_ACTIVATION_FAILED,
                context={"detail": f"fd {fd}: {e}"},
                cause=e,
            ) from e
        if sock.type != socket.SOCK_STREAM:
            logger.warning("Skipping activated fd %d, not a stream socket", fd)
            sock.detach()
            continue
        sockets.append(sock)
    return sockets


def serve(
    app: FastAPI,
    *,
    host: str,
    port: int,
    sockets: list[socket.socket] | None = None,
    log_level: str = "info",
) -> None:
    """Serve ``app`` on activated sockets, or on ``host:port`` if there are none."""
    if sockets:
        logger.info("Serving on %d activated socket(s)", len(sockets))
        server = uvicorn.Server(uvicorn.Config(app, log_level=log_level))
        server.run(sockets=sockets)
        return

    logger.info("No sockets provided, listening on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port, log_level=log_level)
