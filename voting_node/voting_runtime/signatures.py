from __future__ import annotations

"""
Ed25519 vote signatures (PyNaCl).

When signed votes are required, the voter identity is the hex-encoded
Ed25519 public key and the signature covers the canonical JSON encoding of
the ballot. Binding the proposal id into the message keeps a signature from
being replayed against another proposal.
"""

import binascii
import json
from typing import Tuple

from nacl.encoding import HexEncoder
from nacl.exceptions import BadSignatureError, CryptoError
from nacl.signing import SigningKey, VerifyKey


def ballot_message(proposal_id: str, voter: str, choice_index: int) -> bytes:
    body = {"choice_index": int(choice_index), "proposal_id": str(proposal_id), "voter": str(voter)}
    return json.dumps(body, sort_keys=True, separators=(",", ":")).encode("utf-8")


def _hex_to_bytes(h: str) -> bytes:
    h = h.strip().lower()
    if h.startswith("0x"):
        h = h[2:]
    return binascii.unhexlify(h.encode("ascii"))


def generate_keypair() -> Tuple[str, str]:
    """Returns (sk_hex, pk_hex)."""
    sk = SigningKey.generate()
    sk_hex = sk.encode(encoder=HexEncoder).decode("ascii")
    pk_hex = sk.verify_key.encode(encoder=HexEncoder).decode("ascii")
    return sk_hex, pk_hex


def sign_ballot(secret_key_hex: str, proposal_id: str, voter: str, choice_index: int) -> str:
    sk = SigningKey(secret_key_hex, encoder=HexEncoder)
    sig = sk.sign(ballot_message(proposal_id, voter, choice_index)).signature
    return binascii.hexlify(sig).decode("ascii")


def verify_ballot(proposal_id: str, voter: str, choice_index: int, signature_hex: str) -> bool:
    try:
        vk = VerifyKey(voter.strip().lower(), encoder=HexEncoder)
        vk.verify(ballot_message(proposal_id, voter, choice_index), _hex_to_bytes(signature_hex))
        return True
    except BadSignatureError:
        return False
    except (CryptoError, ValueError, TypeError, binascii.Error):
        # malformed key or signature encoding
        return False
