"""Render registry snapshots in the Prometheus plaintext exposition format (0.0.4)."""
import math
from typing import Iterable, List

from .exceptions import EncodingError
from .registry import MetricSnapshot

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def escape_label_value(value: str) -> str:
    if not isinstance(value, str):
        raise EncodingError(f"Label values must be strings, got {value!r}")
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


def format_value(value) -> str:
    """Integers without a decimal point, floats as their shortest repr."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise EncodingError(f"Cannot encode value of type {type(value).__name__}: {value!r}")
    if isinstance(value, int):
        return str(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return repr(value)


def encode(snapshot: Iterable[MetricSnapshot]) -> str:
    lines: List[str] = []
    for descriptor, samples in snapshot:
        name = descriptor.name
        lines.append(f"# HELP {name} {escape_help(descriptor.help)}")
        lines.append(f"# TYPE {name} {descriptor.kind.value}")
        for labels, value in samples:
            if tuple(label for label, _ in labels) != descriptor.label_names:
                raise EncodingError(f"Sample labels {labels!r} do not match metric {name}")
            if labels:
                rendered = ",".join(f'{label}="{escape_label_value(v)}"' for label, v in labels)
                lines.append(f"{name}{{{rendered}}} {format_value(value)}")
            else:
                lines.append(f"{name} {format_value(value)}")
    if not lines:
        return ""
    return "\n".join(lines) + "\n"
