"""
Discord interaction webhook handling

Signature verification and responses for the HTTP interactions endpoint.
"""

import logging
from enum import IntEnum
from typing import Optional

from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class InteractionType(IntEnum):
    PING = 1
    APPLICATION_COMMAND = 2


class InteractionResponseType(IntEnum):
    PONG = 1
    CHANNEL_MESSAGE_WITH_SOURCE = 4


class Interaction(BaseModel):
    """Fields of an incoming interaction that the endpoint reads"""
    type: int
    data: Optional[dict] = None


def verify_signature(public_key: str, signature: str, timestamp: str, body: bytes) -> bool:
    """Check the Ed25519 signature Discord puts on every interaction"""
    try:
        verify_key = VerifyKey(bytes.fromhex(public_key))
        verify_key.verify(timestamp.encode() + body, bytes.fromhex(signature))
    except BadSignatureError:
        return False
    except ValueError as e:
        # Malformed hex or wrong key/signature length
        logger.warning(f"Malformed signature material: {e}")
        return False
    return True


def build_response(interaction: Interaction) -> dict:
    """Response payload for a verified interaction"""
    if interaction.type == InteractionType.PING:
        return {'type': InteractionResponseType.PONG}

    command = (interaction.data or {}).get('name')
    if interaction.type == InteractionType.APPLICATION_COMMAND and command == 'ping':
        return {
            'type': InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE,
            'data': {'content': 'Pong! 🏓 Interactions endpoint is alive.'},
        }

    return {
        'type': InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE,
        'data': {'content': 'Hello from your Interactions endpoint!'},
    }
