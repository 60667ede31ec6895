"""Measurement text format.

One measurement per line, whitespace separated:

    L  px   py                timestamp  [px_gt py_gt vx_gt vy_gt yaw_gt yawrate_gt]
    R  rho  phi  rho_dot      timestamp  [px_gt py_gt vx_gt vy_gt yaw_gt yawrate_gt]

The six ground truth columns are optional, but must be all present or all
absent. Blank lines and lines starting with '#' are skipped by
load_measurements.
"""

from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Union

import numpy as np

from sensor_fusion.fusion.types import GROUND_TRUTH_DIM, MeasurementRecord, SensorKind


def parse_measurement_line(line: str) -> MeasurementRecord:
    """Parse one measurement line into a record.

    Args:
        line: Text line in the format described in the module docstring.

    Returns:
        Parsed MeasurementRecord.

    Raises:
        ValueError: If the sensor tag is unknown, a field is missing or
            not numeric, or there are extra fields.

    Example:
        >>> rec = parse_measurement_line("L 3.12 0.58 1477010443050000")
        >>> rec.sensor, rec.timestamp
        (<SensorKind.LASER: 'L'>, 1477010443050000)
    """
    fields = line.split()
    if not fields:
        raise ValueError("Empty measurement line")

    tag = fields[0]
    try:
        sensor = SensorKind(tag)
    except ValueError:
        raise ValueError(f"Unknown sensor type {tag!r}, expected 'L' or 'R'") from None

    n_meas = sensor.measurement_dim
    values = fields[1:]
    n_expected = n_meas + 1
    if len(values) not in (n_expected, n_expected + GROUND_TRUTH_DIM):
        raise ValueError(
            f"{sensor.name} line must have {n_expected} or "
            f"{n_expected + GROUND_TRUTH_DIM} values after the tag, got {len(values)}"
        )

    try:
        z = np.array([float(v) for v in values[:n_meas]])
        timestamp = int(values[n_meas])
        ground_truth: Optional[np.ndarray] = None
        if len(values) > n_expected:
            ground_truth = np.array([float(v) for v in values[n_expected:]])
    except ValueError as e:
        raise ValueError(f"Non-numeric field in measurement line: {e}") from None

    return MeasurementRecord(
        sensor=sensor,
        z=z,
        timestamp=timestamp,
        ground_truth=ground_truth,
    )


def iter_measurements(lines: Iterable[str]) -> Iterator[MeasurementRecord]:
    """Parse measurement lines lazily.

    Raises:
        ValueError: On the first malformed line, with its 1-based line number.
    """
    for lineno, line in enumerate(lines, start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        try:
            yield parse_measurement_line(stripped)
        except (TypeError, ValueError) as e:
            raise ValueError(f"line {lineno}: {e}") from e


def load_measurements(path: Union[str, Path]) -> List[MeasurementRecord]:
    """Load all measurements from a text file.

    Args:
        path: Path to the measurement file.

    Returns:
        List of records in file order.
    """
    with open(path, "r") as f:
        return list(iter_measurements(f))


def format_measurement(record: MeasurementRecord) -> str:
    """Render a record back into the text format."""
    fields = [record.sensor.value]
    fields.extend(f"{v:.6f}" for v in record.z)
    fields.append(str(record.timestamp))
    if record.ground_truth is not None:
        fields.extend(f"{v:.6f}" for v in record.ground_truth)
    return "\t".join(fields)
