"""
Canned song details served by the built-in `/info` provider.

Known (group, song) pairs get their stored entry; anything else gets a
generated placeholder so the create flow always has something to persist.
"""

from __future__ import annotations

from urllib.parse import quote_plus

DEFAULT_RELEASE_DATE = "16.07.2006"

_CATALOG: dict[tuple[str, str], dict[str, str]] = {
    ("muse", "supermassive black hole"): {
        "releaseDate": "16.07.2006",
        "text": (
            "Lights go down across the city\n"
            "Every signal bending in\n"
            "Gravity is pulling harder\n"
            "Nothing leaves once it begins\n"
            "\n"
            "Hold on to the edge of evening\n"
            "Spin until the stars run thin"
        ),
        "link": "https://www.youtube.com/watch?v=Xsp3_a-PMTw",
    },
}


def _search_link(group: str, song: str) -> str:
    return f"https://www.youtube.com/results?search_query={quote_plus(f'{group} {song}')}"


def _placeholder_text(group: str, song: str) -> str:
    return "\n".join(
        [
            f"{song}, first verse",
            f"as played by {group}",
            "",
            f"{song}, second verse",
            "the chorus comes around again",
        ]
    )


def lookup(group: str, song: str) -> dict[str, str]:
    key = (group.strip().casefold(), song.strip().casefold())
    entry = _CATALOG.get(key)
    if entry is not None:
        return dict(entry)
    return {
        "releaseDate": DEFAULT_RELEASE_DATE,
        "text": _placeholder_text(group, song),
        "link": _search_link(group, song),
    }
