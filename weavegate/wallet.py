"""
Arweave wallets.

A wallet is an RSA key in JWK form. The public modulus `n` is the
transaction `owner`; the wallet address is the Base64URL SHA-256 digest
of the raw modulus bytes.

Message signatures are RSA-PSS over SHA-256 (salt length 32), the scheme
the network itself uses for transaction signatures.
"""

import hashlib
import json
from typing import Mapping

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from weavegate.codec import base64url_to_buffer, buffer_to_base64url
from weavegate.errors import EncodingError, WalletError


PUBLIC_EXPONENT = 65537
DEFAULT_KEY_SIZE = 4096
PSS_SALT_LENGTH = 32
SIGNATURE_ALGORITHM = "RSA-PSS with SHA-256"

_REQUIRED_FIELDS = ("kty", "n", "e")
_PRIVATE_FIELDS = ("d", "p", "q", "dp", "dq", "qi")


def _b64url_int(value: str) -> int:
    return int.from_bytes(base64url_to_buffer(value), "big")


def _int_b64url(value: int) -> str:
    return buffer_to_base64url(value.to_bytes((value.bit_length() + 7) // 8 or 1, "big"))


def _to_bytes(message: bytes | str) -> bytes:
    return message.encode("utf-8") if isinstance(message, str) else bytes(message)


def owner_to_address(owner: str) -> str:
    """Derive the wallet address from a Base64URL owner (public modulus)."""
    return buffer_to_base64url(hashlib.sha256(base64url_to_buffer(owner)).digest())


def verify_signature(message: bytes | str, signature: str, owner: str) -> bool:
    """
    Check an RSA-PSS signature against the owner's public modulus.

    Args:
        message: The signed message.
        signature: Base64URL signature.
        owner: Base64URL public modulus `n` (exponent 65537 assumed).

    Returns:
        True if the signature is valid. Malformed input is simply invalid.
    """
    try:
        public_key = rsa.RSAPublicNumbers(PUBLIC_EXPONENT, _b64url_int(owner)).public_key()
        public_key.verify(
            base64url_to_buffer(signature),
            _to_bytes(message),
            padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=padding.PSS.AUTO),
            hashes.SHA256(),
        )
        return True
    except (InvalidSignature, EncodingError, ValueError, TypeError):
        return False


class Wallet:
    """
    An Arweave RSA wallet loaded from a JWK.

    A public-only JWK is enough for address derivation; signing needs the
    private exponent.
    """

    def __init__(self, jwk: Mapping[str, str]):
        missing = [f for f in _REQUIRED_FIELDS if not jwk.get(f)]
        if missing:
            raise WalletError(f"Invalid JWK: missing required fields {', '.join(missing)}")
        if jwk["kty"] != "RSA":
            raise WalletError(f"Invalid JWK: expected kty 'RSA', got {jwk['kty']!r}")
        self._jwk = {k: jwk[k] for k in _REQUIRED_FIELDS + _PRIVATE_FIELDS if jwk.get(k)}
        self._private_key = None

    @classmethod
    def from_jwk(cls, jwk: str | Mapping[str, str]) -> "Wallet":
        """Load a wallet from a JWK mapping or its JSON text."""
        if isinstance(jwk, str):
            try:
                jwk = json.loads(jwk)
            except ValueError as e:
                raise WalletError(f"Failed to parse JWK: {e}") from e
        if not isinstance(jwk, Mapping):
            raise WalletError("Failed to parse JWK: expected a JSON object")
        return cls(jwk)

    @classmethod
    def generate(cls, key_size: int = DEFAULT_KEY_SIZE) -> "Wallet":
        """Create a fresh wallet with a new RSA key."""
        key = rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=key_size)
        priv = key.private_numbers()
        pub = priv.public_numbers
        wallet = cls({
            "kty": "RSA",
            "n": _int_b64url(pub.n),
            "e": _int_b64url(pub.e),
            "d": _int_b64url(priv.d),
            "p": _int_b64url(priv.p),
            "q": _int_b64url(priv.q),
            "dp": _int_b64url(priv.dmp1),
            "dq": _int_b64url(priv.dmq1),
            "qi": _int_b64url(priv.iqmp),
        })
        wallet._private_key = key
        return wallet

    @property
    def owner(self) -> str:
        """Base64URL public modulus, as used in a transaction's owner field."""
        return self._jwk["n"]

    @property
    def address(self) -> str:
        return owner_to_address(self.owner)

    @property
    def has_private_key(self) -> bool:
        return "d" in self._jwk

    def to_jwk(self, include_private: bool = True) -> dict:
        if include_private:
            return dict(self._jwk)
        return {k: self._jwk[k] for k in _REQUIRED_FIELDS}

    def _load_private_key(self) -> rsa.RSAPrivateKey:
        if self._private_key is not None:
            return self._private_key
        if not self.has_private_key:
            raise WalletError("Wallet has no private key; signing requires a full JWK")

        try:
            n = _b64url_int(self._jwk["n"])
            e = _b64url_int(self._jwk["e"])
            d = _b64url_int(self._jwk["d"])
            if "p" in self._jwk and "q" in self._jwk:
                p = _b64url_int(self._jwk["p"])
                q = _b64url_int(self._jwk["q"])
            else:
                p, q = rsa.rsa_recover_prime_factors(n, e, d)
            priv = rsa.RSAPrivateNumbers(
                p=p,
                q=q,
                d=d,
                dmp1=rsa.rsa_crt_dmp1(d, p),
                dmq1=rsa.rsa_crt_dmq1(d, q),
                iqmp=rsa.rsa_crt_iqmp(p, q),
                public_numbers=rsa.RSAPublicNumbers(e, n),
            )
            self._private_key = priv.private_key()
        except (EncodingError, ValueError) as err:
            raise WalletError(f"Invalid JWK private key material: {err}") from err
        return self._private_key

    def sign(self, message: bytes | str) -> str:
        """Sign a message with RSA-PSS/SHA-256. Returns a Base64URL signature."""
        signature = self._load_private_key().sign(
            _to_bytes(message),
            padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=PSS_SALT_LENGTH),
            hashes.SHA256(),
        )
        return buffer_to_base64url(signature)

    def verify(self, message: bytes | str, signature: str) -> bool:
        return verify_signature(message, signature, self.owner)
