#!/usr/bin/env python3
"""Prints a fresh VAPID key pair as .env lines. From the project root: python3 scripts/generate_vapid_keys.py"""
import base64

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec


def b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def generate() -> tuple[str, str]:
    # Web Push requires P-256
    private_key = ec.generate_private_key(ec.SECP256R1())
    public_bytes = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.X962,
        format=serialization.PublicFormat.UncompressedPoint,
    )
    private_bytes = private_key.private_numbers().private_value.to_bytes(32, byteorder="big")
    return b64url(public_bytes), b64url(private_bytes)


def main():
    public_key, private_key = generate()
    print(f"VAPID_PUBLIC_KEY={public_key}")
    print(f"VAPID_PRIVATE_KEY={private_key}")
    print("# Keep the private key out of version control; rotating it invalidates every stored subscription.")


if __name__ == "__main__":
    main()
