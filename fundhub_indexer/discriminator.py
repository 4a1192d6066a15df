import hashlib

DISCRIMINATOR_SIZE = 8


def account_discriminator(name: str) -> bytes:
    """Anchor account tag: first 8 bytes of sha256("account:<Name>")."""
    return hashlib.sha256(f"account:{name}".encode()).digest()[:DISCRIMINATOR_SIZE]


DISCRIMINATOR_PROJECT = account_discriminator("Project")
DISCRIMINATOR_DAO = account_discriminator("Dao")
DISCRIMINATOR_PROPOSAL = account_discriminator("Proposal")
DISCRIMINATOR_VAULT = account_discriminator("Vault")
