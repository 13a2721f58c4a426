"""
Device Synchronization

Optional CUDA synchronization for timing candidates that launch GPU work.
PyTorch is imported lazily; it is only required when ``sync_cuda`` is on.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from qtimeit.clock import Clock

logger = logging.getLogger(__name__)


def cuda_synchronizer() -> Optional[Callable[[], None]]:
    """Get a CUDA synchronization hook.

    Returns:
        ``torch.cuda.synchronize`` if CUDA is available, otherwise None.
    """
    import torch

    if torch.cuda.is_available():
        return torch.cuda.synchronize
    logger.debug("CUDA not available; clock reads are not synchronized")
    return None


def make_clock(sync_cuda: bool = False) -> Clock:
    """Create the best available clock, synchronized with CUDA if requested.

    Args:
        sync_cuda: Whether to synchronize CUDA before each clock read.

    Returns:
        Clock instance.
    """
    synchronize = cuda_synchronizer() if sync_cuda else None
    return Clock.best_available(synchronize=synchronize)
