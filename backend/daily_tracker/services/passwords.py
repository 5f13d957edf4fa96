"""
One-way password hashing with bcrypt.

The stored value is the full bcrypt string (salt and cost included), so
verification needs nothing but the hash.

bcrypt only reads the first 72 bytes of its input and current releases
raise on anything longer. `password_too_long` lets callers turn that into a
400 before hashing.

Both helpers are CPU-bound (roughly 200 ms at cost 12). Async callers use
`hash_password_async` / `verify_password_async`, which run them in
Starlette's threadpool so the event loop keeps serving other requests.
"""

import bcrypt
from fastapi.concurrency import run_in_threadpool

BCRYPT_ROUNDS = 12
MAX_PASSWORD_BYTES = 72


def password_too_long(password: str) -> bool:
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a password with bcrypt."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash. Malformed hashes and over-long passwords never match."""
    if password_too_long(password):
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


async def hash_password_async(password: str) -> str:
    return await run_in_threadpool(hash_password, password)


async def verify_password_async(password: str, password_hash: str) -> bool:
    return await run_in_threadpool(verify_password, password, password_hash)
