"""
Facet grouping and catalog views.

Facets group tracks by (album artist or artist, album). They are derived
from a catalog snapshot and hold no state of their own: rebuild them after
every scan.
"""

from typing import Iterable, Optional, Sequence

from .models import Facet, MediaItem, Track


def _facet_sort_key(facet: Facet) -> tuple:
    # Missing values sort before any string
    def part(value: Optional[str]) -> tuple:
        return (value is not None, value or "")

    return (part(facet.album_artist_or_artist), part(facet.album))


def build_facets(tracks: Iterable[Track]) -> list[Facet]:
    """Build the facet list for a set of tracks.

    Duplicates collapse to one facet, the result is sorted by
    (album artist or artist, album), case-sensitively, and the
    "show everything" facet is always first.
    """
    unique = {Facet(track.album_artist_or_artist, track.album) for track in tracks}
    return [Facet.everything()] + sorted(unique, key=_facet_sort_key)


def filter_by_facets(tracks: Iterable[Track], selected: Sequence[Facet]) -> list[Track]:
    """Tracks belonging to any of the selected facets.

    Selecting the "show everything" facet returns every track; selecting
    nothing returns nothing.
    """
    tracks = list(tracks)
    if any(facet.all for facet in selected):
        return tracks

    wanted = {(facet.album_artist_or_artist, facet.album) for facet in selected}
    return [t for t in tracks if (t.album_artist_or_artist, t.album) in wanted]


def search_items(items: Iterable[MediaItem], query: str) -> list[MediaItem]:
    """Search items by title, artist, or album (case-insensitive)."""
    query = query.lower().strip()
    items = list(items)
    if not query:
        return items

    results = []
    for item in items:
        search_fields = [item.display_title, item.display_artist, item.display_album]
        if any(query in field.lower() for field in search_fields):
            results.append(item)
    return results
