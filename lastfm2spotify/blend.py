"""Round-robin blending of several users' track lists."""

from typing import List, Mapping, Optional, Sequence


def blend(
    per_user_tracks: Mapping[str, Sequence[str]], target_count: Optional[int] = None
) -> List[str]:
    """
    Interleave users' tracks: every user's first track, then every second, ...

    Users are visited in mapping order. Shorter lists simply stop contributing.
    Stops at `target_count` tracks (None means no cap).
    """
    if target_count is not None and target_count <= 0:
        return []

    lists = list(per_user_tracks.values())
    blended: List[str] = []
    index = 0

    while True:
        appended = False
        for tracks in lists:
            if index < len(tracks):
                blended.append(tracks[index])
                appended = True
                if target_count is not None and len(blended) >= target_count:
                    return blended
        if not appended:
            return blended
        index += 1
