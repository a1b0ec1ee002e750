#!/usr/bin/env python3
"""Peer transport: run pipeboard on another machine over ssh.

send_to() runs `ssh <target> <remote_cmd> copy` with the data on stdin;
read_from() runs `ssh <target> <remote_cmd> paste` and captures stdout.
Each call is a single request/response; no connection is kept between
calls. Any failure, whether ssh could not connect or the remote command
exited non-zero, is reported as PeerUnreachable naming the peer and target.
"""

from __future__ import annotations

import asyncio
import logging

from pipeboard.config import PeerConfig
from pipeboard.errors import PeerUnreachable
from pipeboard.process import ProcessResult, run_process

logger = logging.getLogger(__name__)

# Seconds allowed for one remote round trip.
PEER_TIMEOUT: float = 30.0

COPY_OPERATION = "copy"
PASTE_OPERATION = "paste"


class PeerTransport:
    """Request/response clipboard exchange with a peer over a remote shell."""

    def __init__(self, ssh_command: list[str] | None = None, timeout: float = PEER_TIMEOUT):
        self.ssh_command = ssh_command or ["ssh"]
        self.timeout = timeout

    def build_argv(self, peer: PeerConfig, operation: str) -> list[str]:
        """Return the argv that runs operation on the peer."""
        return [*self.ssh_command, peer.ssh, peer.remote_cmd, operation]

    async def _invoke(self, peer: PeerConfig, operation: str, stdin: bytes | None) -> ProcessResult:
        argv = self.build_argv(peer, operation)
        try:
            result = await run_process(argv, stdin=stdin, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise PeerUnreachable(peer.name, peer.ssh, f"timed out after {self.timeout:g}s") from e
        except FileNotFoundError as e:
            raise PeerUnreachable(peer.name, peer.ssh, f"{argv[0]} not found") from e
        except OSError as e:
            raise PeerUnreachable(peer.name, peer.ssh, str(e)) from e
        if not result.ok:
            detail = result.stderr_text() or "no error output"
            raise PeerUnreachable(
                peer.name, peer.ssh, f"{operation} exited with status {result.returncode}: {detail}"
            )
        return result

    async def send_to(self, peer: PeerConfig, data: bytes) -> None:
        """Set the peer's clipboard to data.

        Raises:
            PeerUnreachable: On transport failure or non-zero remote exit.
        """
        await self._invoke(peer, COPY_OPERATION, data)
        logger.debug("Sent %d bytes to peer %s", len(data), peer.name)

    async def read_from(self, peer: PeerConfig) -> bytes:
        """Return the peer's clipboard content.

        Raises:
            PeerUnreachable: On transport failure or non-zero remote exit.
        """
        result = await self._invoke(peer, PASTE_OPERATION, None)
        logger.debug("Read %d bytes from peer %s", len(result.stdout), peer.name)
        return result.stdout
