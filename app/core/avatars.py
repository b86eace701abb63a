from urllib.parse import quote


def default_avatar(name: str) -> str:
    """Generated initials avatar for profiles without an uploaded picture."""
    return f"https://ui-avatars.com/api/?name={quote(name)}&background=random"
