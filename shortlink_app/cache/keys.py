"""Cache key conventions shared by every service."""


def link_key(short_code: str) -> str:
    return f"link:{short_code}"


def clicks_key(link_id: str) -> str:
    return f"clicks:{link_id}"
