def estimate_sampling_interval(target_interval: int, total_steps: int) -> int:
    """Estimate sampling interval.

    Long runs are sampled every target_interval steps; short runs are sampled so that there are
    about ten frames. The interval is never smaller than one step.

    Args:
        target_interval: the desired number of steps between frames.
        total_steps: the number of steps of the run.

    Returns:
        sampling_interval: min(target_interval, floor(total_steps / 10)), at least 1.
    """
    sampling_interval = min(target_interval, total_steps // 10)
    return max(sampling_interval, 1)
