# tssh

Building blocks for the SSH-2.0 transport layer:

- encoding and decoding of SSH wire data types (strings, name-lists, mpints)
- an `ecdh-sha2-nistp256` key exchange, with the host's exchange-hash signature
  checked by `rsa-sha2-512`
- session key derivation, and `aes256-ctr` encryption with `hmac-sha2-256` MACs
  and no compression

## Installation

```
pip install .
```

With the test dependencies:

```
pip install ".[test]"
```

## Wire types: `tssh.wire`

```python
from tssh.wire import encode_string, decode_string, encode_name_list, decode_name_list

encode_string(b"ssh-userauth")            # b"\x00\x00\x00\x0cssh-userauth"
decode_string(b"\x00\x00\x00\x02hirest")  # (b"hi", b"rest")
decode_name_list(encode_name_list(["aes256-ctr", "none"]))  # (["aes256-ctr", "none"], b"")
```

- `encode_string(data)` / `decode_string(data)` — a uint32 length and the bytes.
  Decoding returns the contents and the bytes that follow.
- `encode_name_list(names)` / `decode_name_list(data)` — comma-separated names.
- `decode_mpint_unsigned(data)` — reads an mpint as an unsigned big-endian integer
  and returns it with the remaining bytes.
- `encode_mpint(num, is_positive)` — encodes a big-endian byte string as an mpint.
  With `is_positive` true the bytes are an unsigned magnitude: leading zero bytes
  are dropped and a zero byte is added when the top bit is set. Otherwise the
  bytes are a negative two's-complement number: leading `0xff` bytes are dropped
  and one is added back when the top bit is clear. Empty or all-zero input gives
  the mpint 0.

Truncated input raises `tssh.errors.SshError`.

## Key exchange and packet protection: `tssh.encrypter`

`Encrypter.exchange(...)` runs an `ecdh-sha2-nistp256` exchange over a packet
stream and returns an `Encrypter` holding the derived keys. The stream may be any
object with:

- `send(payload, encrypter)` — send one packet payload, protected by `encrypter`
  if it is not `None`;
- `read_until(wait_type)` — read packets until one of type `wait_type` arrives,
  returning its payload (without the type byte) and the number of packets read.

The other arguments name the negotiated algorithms (`aes256-ctr`,
`hmac-sha2-256`, `none`, `rsa-sha2-512`), give the exchange-hash fields gathered
so far (`hash_prefix`), the packets already received (`num_read`), and the current
encrypter on a re-key (`old`, or `None`). Unsupported algorithm names, a bad host
key or signature, or a non-empty `SSH_MSG_NEWKEYS` raise `SshError`. On the first
exchange the session id is the exchange hash; on a re-key the session id and
sequence numbers are kept from `old`.

An `Encrypter` then provides:

- `encrypt(plaintext)` / `decrypt(ciphertext)` — AES-256-CTR over data whose
  length is a multiple of 16; the counter carries on between calls.
- `block_size()` — 16.
- `mac(message)` / `verify(message, mac)` — HMAC-SHA-256 over the sequence
  number and the packet; each call advances its sequence number.
- `compress(payload)` / `decompress(payload)` — return the payload unchanged.

Helpers in the same module:

- `derive_key(shared_secret, exchange_hash, letter, session_id, length)` — key
  material for letters `"A"` to `"F"`, extended with SHA-256 up to `length`.
- `verify_rsa_sha2_512(host_key, message, signature)` and
  `verify_host_signature(host_key_alg, host_key, message, signature)` — check a
  signature given in SSH wire form; failure raises `SshError`.

## Errors

All protocol failures raise `tssh.errors.SshError`; its `message` attribute holds
the reason.

## What it does not do

The package has no command-line program and opens no network connections. It
does not read or write binary packets on a socket, perform the version exchange,
build or parse `SSH_MSG_KEXINIT`, or negotiate algorithms; a caller supplies the
packet stream and the negotiated names. User authentication and sessions are not
provided.

## Tests

```
pytest
```