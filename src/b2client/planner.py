from __future__ import annotations

from .errors import B2ValidationError
from .types import UploadPlan, UploadStrategy


def plan(size: int, large_file_threshold: int, recommended_part_size: int) -> UploadPlan:
    """Choose a single request or a large-file session for ``size`` bytes.

    Empty bodies always go as a single request: a large file needs at least
    one part.
    """
    if size < 0:
        raise B2ValidationError(f"size must not be negative, got {size}")
    if recommended_part_size <= 0:
        raise B2ValidationError(
            f"part size must be positive, got {recommended_part_size}"
        )
    if size == 0 or (size <= large_file_threshold and size <= recommended_part_size):
        return UploadPlan(
            size=size,
            strategy=UploadStrategy.STANDARD,
            part_size=recommended_part_size,
            part_count=0,
        )
    part_count = -(-size // recommended_part_size)
    return UploadPlan(
        size=size,
        strategy=UploadStrategy.MULTIPART,
        part_size=recommended_part_size,
        part_count=part_count,
    )


__all__ = ["plan"]
