"""Tuning recommendations derived from an iostat summary's percentages."""

from typing import List, Mapping, Tuple

from ..models.summary import ThresholdResult

# A condition must hold in more than this percentage of samples to be reported.
RECOMMENDATION_CUTOFF_PCT = 10.0

IO_SATURATED_DISKS = (
    "Increase IOPS and throughput capacity on the following disks: {disks}"
)
IO_WAIT_NO_SATURATED_DISK = (
    "The CPU is often waiting on the IO layer, which could be network. "
    "None of the disks are substantially saturated."
)
CPU_HIGH_TWO_THREADS = (
    "For systems with 2 threads per core (see lscpu output), the CPU utilization "
    "is too high. Increase CPU count or reduce workload."
)
CPU_HIGH_ONE_THREAD = (
    "For systems with 1 thread per core (see lscpu output), the CPU utilization "
    "is too high. Increase CPU count or reduce workload."
)


def iostat_recommendations(
    cpu_over_busy: ThresholdResult,
    cpu_over_saturated: ThresholdResult,
    iowait_over: ThresholdResult,
    queue_depth: Mapping[str, ThresholdResult],
    cutoff: float = RECOMMENDATION_CUTOFF_PCT,
) -> Tuple[str, ...]:
    """
    Turn threshold percentages into ordered, human-readable advice.

    - Frequent IO wait: name the disks whose queue is frequently deep, or
      point at the network when no disk is.
    - Busy CPU: warn for 2-threads-per-core systems.
    - Saturated CPU: warn for 1-thread-per-core systems.
    """
    advice: List[str] = []
    if iowait_over.percentage > cutoff:
        saturated = [disk for disk, result in queue_depth.items() if result.percentage > cutoff]
        if saturated:
            advice.append(IO_SATURATED_DISKS.format(disks=", ".join(saturated)))
        else:
            advice.append(IO_WAIT_NO_SATURATED_DISK)
    if cpu_over_busy.percentage > cutoff:
        advice.append(CPU_HIGH_TWO_THREADS)
    if cpu_over_saturated.percentage > cutoff:
        advice.append(CPU_HIGH_ONE_THREAD)
    return tuple(advice)
