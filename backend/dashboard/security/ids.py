"""
Secure identifiers
"""
import uuid


def generate_secure_id() -> str:
    """
    Generate an unpredictable unique ID (UUID version 4)

    uuid4 draws its 122 random bits from os.urandom, the OS CSPRNG.

    Returns:
        e.g. '3f2b8c1e-9d4a-4e7b-a1c2-5f6e7d8c9b0a'
    """
    return str(uuid.uuid4())
