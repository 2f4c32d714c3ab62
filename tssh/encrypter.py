"""Key exchange, key derivation and per-packet protection for an SSH session."""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from typing import NamedTuple, Protocol

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicNumbers
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from tssh.errors import SshError
from tssh.wire import decode_mpint_unsigned, decode_string, encode_mpint, encode_string

SSH_MSG_NEWKEYS = 21
SSH_MSG_KEX_ECDH_INIT = 30
SSH_MSG_KEX_ECDH_REPLY = 31

_COUNTER_MODULUS = 1 << 128
_SEQUENCE_MODULUS = 1 << 32


class _CipherSpec(NamedTuple):
    iv_length: int
    key_length: int
    block_size: int


_CIPHERS = {"aes256-ctr": _CipherSpec(iv_length=16, key_length=32, block_size=16)}
_MAC_KEY_LENGTHS = {"hmac-sha2-256": 32}
_COMPRESSIONS = frozenset({"none"})
_KEX_ALGS = frozenset({"ecdh-sha2-nistp256"})


class _PacketStream(Protocol):
    def send(self, payload: bytes, encrypter: Encrypter | None) -> None: ...

    def read_until(self, wait_type: int) -> tuple[bytes, int]: ...


def _lookup(table, name: str, message: str):
    if name not in table:
        raise SshError(message)
    return table[name] if isinstance(table, dict) else name


def derive_key(
    shared_secret: bytes,
    exchange_hash: bytes,
    letter: str,
    session_id: bytes,
    length: int,
) -> bytes:
    """Derive ``length`` bytes of key material for the given letter ('A' to 'F')."""
    result = hashlib.sha256(
        encode_mpint(shared_secret, True)
        + bytes(exchange_hash)
        + letter.encode("ascii")
        + bytes(session_id)
    ).digest()
    while len(result) < length:
        result += hashlib.sha256(
            bytes(shared_secret) + bytes(exchange_hash) + result
        ).digest()
    return result[:length]


def verify_rsa_sha2_512(host_key: bytes, message: bytes, signature: bytes) -> None:
    """Check an ``rsa-sha2-512`` signature over ``message`` with an ``ssh-rsa`` host key.

    Both ``host_key`` and ``signature`` are in the wire form the host sent them in.
    """
    key_type, rest = decode_string(host_key)
    if key_type != b"ssh-rsa":
        raise SshError("Invalid host key type: Expected ssh-rsa")

    exponent, rest = decode_mpint_unsigned(rest)
    modulus, _ = decode_mpint_unsigned(rest)
    try:
        public_key = RSAPublicNumbers(exponent, modulus).public_key()
    except ValueError as exc:
        raise SshError("Invalid RSA host key") from exc

    sig_type, rest = decode_string(signature)
    if sig_type != b"rsa-sha2-512":
        raise SshError("Invalid signature type: Expected rsa-sha2-512")
    raw_signature, _ = decode_string(rest)

    try:
        public_key.verify(raw_signature, bytes(message), padding.PKCS1v15(), hashes.SHA512())
    except InvalidSignature as exc:
        raise SshError("Failed to validate signature of exchange hash") from exc


def verify_host_signature(
    host_key_alg: str, host_key: bytes, message: bytes, signature: bytes
) -> None:
    """Check a host signature with the negotiated host key algorithm."""
    if host_key_alg == "rsa-sha2-512":
        verify_rsa_sha2_512(host_key, message, signature)
    else:
        raise SshError("Made new encrypter with invalid host key algorithm")


def _aes256_ctr(data: bytes, key: bytes, iv: bytes, verb: str) -> tuple[bytes, bytes]:
    """Apply the AES-256 keystream starting at counter ``iv``; return output and next counter."""
    if len(data) % 16:
        raise SshError(f"Tried to {verb} block with bad size: Expected multiple of 16")
    if not data:
        return b"", iv
    if len(key) != 32:
        raise SshError(f"Tried to {verb} with invalid key length: Expect 32 bytes")
    if len(iv) != 16:
        raise SshError(f"Tried to {verb} with invalid iv length: Expect 16 bytes")

    context = Cipher(algorithms.AES(key), modes.CTR(iv)).encryptor()
    output = context.update(bytes(data)) + context.finalize()
    counter = (int.from_bytes(iv, "big") + len(data) // 16) % _COUNTER_MODULUS
    return output, counter.to_bytes(16, "big")


def _ecdh_sha2_nistp256(
    stream: _PacketStream,
    host_key_alg: str,
    hash_prefix: bytes,
    old: Encrypter | None,
) -> tuple[bytes, bytes, int]:
    """Run the ECDH exchange; return the shared secret, exchange hash and packets read."""
    private_key = ec.generate_private_key(ec.SECP256R1())
    client_public = private_key.public_key().public_bytes(
        Encoding.X962, PublicFormat.UncompressedPoint
    )

    stream.send(bytes([SSH_MSG_KEX_ECDH_INIT]) + encode_string(client_public), old)

    reply, num_read = stream.read_until(SSH_MSG_KEX_ECDH_REPLY)
    host_key, rest = decode_string(reply)
    server_public, rest = decode_string(rest)
    signature, _ = decode_string(rest)

    try:
        peer_key = ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256R1(), server_public)
    except ValueError as exc:
        raise SshError("Failed to parse ecdh public key") from exc

    shared_secret = private_key.exchange(ec.ECDH(), peer_key)

    exchange_hash = hashlib.sha256(
        bytes(hash_prefix)
        + encode_string(host_key)
        + encode_string(client_public)
        + encode_string(server_public)
        + encode_mpint(shared_secret, True)
    ).digest()

    verify_host_signature(host_key_alg, host_key, exchange_hash, signature)
    return shared_secret, exchange_hash, num_read


@dataclass
class Encrypter:
    """Keys, counters and algorithms that protect packets in both directions."""

    iv_encrypt: bytes
    iv_decrypt: bytes
    encrypt_key: bytes
    decrypt_key: bytes
    mac_key_send: bytes
    mac_key_receive: bytes
    session_id: bytes
    packet_num_send: int = 0
    packet_num_receive: int = 0
    encrypt_alg: str = "aes256-ctr"
    decrypt_alg: str = "aes256-ctr"
    mac_alg_send: str = "hmac-sha2-256"
    mac_alg_receive: str = "hmac-sha2-256"
    compress_alg: str = "none"
    decompress_alg: str = "none"

    @classmethod
    def exchange(
        cls,
        stream: _PacketStream,
        kex_alg: str,
        host_key_alg: str,
        encrypt_alg: str,
        decrypt_alg: str,
        mac_alg_send: str,
        mac_alg_receive: str,
        compress_alg: str,
        decompress_alg: str,
        hash_prefix: bytes,
        num_read: int,
        old: Encrypter | None,
    ) -> Encrypter:
        """Run a key exchange on ``stream`` and derive a new set of session keys.

        ``hash_prefix`` holds the exchange-hash fields gathered so far, ``num_read``
        the packets already received, and ``old`` the current encrypter on a re-key.
        """
        encrypt_spec = _lookup(
            _CIPHERS, encrypt_alg, "Made new encrypter for incompatible encryption algorithm"
        )
        decrypt_spec = _lookup(
            _CIPHERS, decrypt_alg, "Made new encrypter for incompatible encryption algorithm"
        )
        mac_send_length = _lookup(
            _MAC_KEY_LENGTHS, mac_alg_send, "Made new encrypter for incompatible mac send algorithm"
        )
        mac_receive_length = _lookup(
            _MAC_KEY_LENGTHS,
            mac_alg_receive,
            "Made new encrypter for incompatible mac receive algorithm",
        )
        _lookup(
            _COMPRESSIONS,
            compress_alg,
            "Made new encrypter for incompatible compression send algorithm",
        )
        _lookup(
            _COMPRESSIONS,
            decompress_alg,
            "Made new encrypter for incompatible compression receive algorithm",
        )
        _lookup(_KEX_ALGS, kex_alg, "Made new encrypter for incompatible key exchange algorithm")

        shared_secret, exchange_hash, kex_read = _ecdh_sha2_nistp256(
            stream, host_key_alg, hash_prefix, old
        )
        num_read += kex_read

        stream.send(bytes([SSH_MSG_NEWKEYS]), old)
        received, newkeys_read = stream.read_until(SSH_MSG_NEWKEYS)
        num_read += newkeys_read
        if received:
            raise SshError("Received invalid SSH_MSG_NEWKEYS message")

        if old is not None:
            packet_num_send = old.packet_num_send
            packet_num_receive = old.packet_num_receive
            session_id = old.session_id
        else:
            packet_num_send, packet_num_receive, session_id = 3, num_read, exchange_hash

        def key(letter: str, length: int) -> bytes:
            return derive_key(shared_secret, exchange_hash, letter, session_id, length)

        return cls(
            iv_encrypt=key("A", encrypt_spec.iv_length),
            iv_decrypt=key("B", decrypt_spec.iv_length),
            encrypt_key=key("C", encrypt_spec.key_length),
            decrypt_key=key("D", decrypt_spec.key_length),
            mac_key_send=key("E", mac_send_length),
            mac_key_receive=key("F", mac_receive_length),
            session_id=session_id,
            packet_num_send=packet_num_send,
            packet_num_receive=packet_num_receive,
            encrypt_alg=encrypt_alg,
            decrypt_alg=decrypt_alg,
            mac_alg_send=mac_alg_send,
            mac_alg_receive=mac_alg_receive,
            compress_alg=compress_alg,
            decompress_alg=decompress_alg,
        )

    def encrypt(self, plaintext: bytes) -> bytes:
        """Encrypt an outgoing packet whose length is a multiple of the block size."""
        output, self.iv_encrypt = _aes256_ctr(
            plaintext, self.encrypt_key, self.iv_encrypt, "encrypt"
        )
        return output

    def decrypt(self, ciphertext: bytes) -> bytes:
        """Decrypt an incoming packet whose length is a multiple of the block size."""
        output, self.iv_decrypt = _aes256_ctr(
            ciphertext, self.decrypt_key, self.iv_decrypt, "decrypt"
        )
        return output

    def block_size(self) -> int:
        """Cipher block size that outgoing packets are padded to."""
        return _CIPHERS[self.encrypt_alg].block_size

    def mac(self, message: bytes) -> bytes:
        """Compute the MAC of an outgoing packet and advance the send sequence number."""
        data = self.packet_num_send.to_bytes(4, "big") + bytes(message)
        result = hmac.new(self.mac_key_send, data, hashlib.sha256).digest()
        self.packet_num_send = (self.packet_num_send + 1) % _SEQUENCE_MODULUS
        return result

    def verify(self, message: bytes, mac: bytes) -> bool:
        """Check the MAC of an incoming packet and advance the receive sequence number."""
        data = self.packet_num_receive.to_bytes(4, "big") + bytes(message)
        expected = hmac.new(self.mac_key_receive, data, hashlib.sha256).digest()
        self.packet_num_receive = (self.packet_num_receive + 1) % _SEQUENCE_MODULUS
        return hmac.compare_digest(expected, bytes(mac))

    def compress(self, payload: bytes) -> bytes:
        """Compress an outgoing payload with the negotiated algorithm."""
        return bytes(payload)

    def decompress(self, payload: bytes) -> bytes:
        """Decompress an incoming payload with the negotiated algorithm."""
        return bytes(payload)