"""
Short prefixed ID generator for orbit records.

Format: {prefix}_{base36_random}
- wd_xxxxxxxx  - word
- av_xxxxxxxx  - avatar blob

8 chars base36 = 36^8 = 2.8 trillion unique IDs per type
Total length: 11 chars (2 prefix + 1 underscore + 8 random)
"""
import secrets
import re

# Base36 alphabet (lowercase letters + digits)
ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
BASE = len(ALPHABET)  # 36

# Valid prefixes
PREFIXES = {
    'word': 'wd',
    'avatar': 'av',
}

# Avatar file extensions by content type
AVATAR_EXTENSIONS = {
    'image/png': 'png',
    'image/jpeg': 'jpg',
    'image/jpg': 'jpg',
    'image/gif': 'gif',
    'image/webp': 'webp',
    'image/svg+xml': 'svg',
}


def _random_base36(length: int = 8) -> str:
    """Generate random base36 string"""
    return ''.join(ALPHABET[secrets.randbelow(BASE)] for _ in range(length))


def generate_id(entity_type: str) -> str:
    """
    Generate a new short ID for the given entity type.

    Args:
        entity_type: One of 'word', 'avatar'

    Returns:
        Short ID like 'wd_x5b8r2yj'

    Raises:
        ValueError: If entity_type is invalid
    """
    if entity_type not in PREFIXES:
        raise ValueError(f"Invalid entity type: {entity_type}. "
                        f"Must be one of: {list(PREFIXES.keys())}")

    return f"{PREFIXES[entity_type]}_{_random_base36(8)}"


def generate_word_id() -> str:
    """Generate a new word ID"""
    return generate_id('word')


def generate_avatar_path(client_token: str, content_type: str) -> str:
    """
    Build a blob path for an uploaded avatar.

    Layout: <token prefix>/av_xxxxxxxx.<ext>
    The token prefix groups a visitor's uploads without exposing the full token.
    """
    folder = re.sub(r'[^A-Za-z0-9_-]', '_', client_token or '')[:12] or 'anon'
    extension = AVATAR_EXTENSIONS.get((content_type or '').lower(), 'bin')
    return f"{folder}/{generate_id('avatar')}.{extension}"
